"""Inter-service communication detection.

Scans Java sources for five independent signatures:
- Feign client declarations (@FeignClient)
- RestTemplate calls
- WebClient calls
- Kafka listeners and KafkaTemplate sends
- RabbitMQ listeners and RabbitTemplate sends

Call sites are located in masked source; argument values are read from the
raw text at the same offsets. String constants declared in the same file are
resolved when an argument names one.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from springlens.analyzers.java_text import (
    first_string_literal,
    mask_source,
    skip_parenthesized,
    string_constants,
)
from springlens.models.corpus import SourceFile
from springlens.models.services import CommunicationEdge, CommunicationType

logger = logging.getLogger(__name__)

LOAD_BALANCED_SCHEME = "lb://"

FEIGN_PATTERN = re.compile(r"@FeignClient\s*\(")
REST_TEMPLATE_PATTERN = re.compile(
    r"\b\w*resttemplate\s*\.\s*"
    r"(getForObject|getForEntity|postForObject|postForEntity|postForLocation"
    r"|put|delete|patchForObject|exchange)\s*\(",
    re.IGNORECASE,
)
WEB_CLIENT_URI_PATTERN = re.compile(r"\.\s*uri\s*\(")
WEB_CLIENT_RECEIVER = re.compile(r"\b\w*webclient\b", re.IGNORECASE)
WEB_CLIENT_VERB_PATTERN = re.compile(r"\.\s*(get|post|put|delete|patch)\s*\(\s*\)")
WEB_CLIENT_BASE_URL = re.compile(r"\.\s*baseUrl\s*\(")
KAFKA_LISTENER_PATTERN = re.compile(r"@KafkaListener\s*\(")
KAFKA_SEND_PATTERN = re.compile(r"\b\w*kafkaTemplate\s*\.\s*send\s*\(", re.IGNORECASE)
RABBIT_LISTENER_PATTERN = re.compile(r"@RabbitListener\s*\(")
RABBIT_SEND_PATTERN = re.compile(
    r"\b\w*rabbitTemplate\s*\.\s*convertAndSend\s*\(", re.IGNORECASE
)
HTTP_METHOD_ARGUMENT = re.compile(r"\bHttpMethod\s*\.\s*([A-Z]+)\b")
LOAD_BALANCED_ANNOTATION = re.compile(r"@LoadBalanced\b")
BLOCKING_CALL = re.compile(r"\.\s*block(?:First|Last)?\s*\(")
REACTIVE_MARKER = re.compile(r"\.\s*subscribe\s*\(|\bbodyTo(?:Mono|Flux)\b|\b(?:Mono|Flux)\s*<")

_URL_HOST = re.compile(r"^[A-Za-z][\w+.-]*://([^/:?#]+)")
_IP_ADDRESS = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
_PLACEHOLDER_TOKEN = re.compile(r"\$\{([^.}:]+)")
_NAMED_ARGUMENT = re.compile(r"^\s*(\w+)\s*=")
_CONSTANT_REFERENCE = re.compile(r"^(?:[A-Za-z_$][\w$]*\.)*([A-Za-z_$][\w$]*)$")

_OPENERS = "({["
_CLOSERS = ")}]"


def service_name_from_url(url: str | None) -> str | None:
    """Guess the target service from a URL.

    Priority: ``lb://`` scheme, literal host (not an IP or localhost),
    ``${placeholder}`` token before its first dot.
    """
    if not url:
        return None
    url = url.strip()

    if url.startswith(LOAD_BALANCED_SCHEME):
        name = url[len(LOAD_BALANCED_SCHEME) :].split("/", 1)[0]
        return name or None

    host = _URL_HOST.match(url)
    if host and "${" not in host.group(1):
        name = host.group(1)
        if name == "localhost" or _IP_ADDRESS.match(name):
            return None
        return name

    placeholder = _PLACEHOLDER_TOKEN.search(url)
    if placeholder:
        return placeholder.group(1).strip() or None
    return None


def split_arguments(masked: str) -> list[tuple[int, int]]:
    """Spans of the top-level comma-separated arguments in masked text."""
    spans: list[tuple[int, int]] = []
    depth = 0
    start = 0
    for index, ch in enumerate(masked):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == "," and depth == 0:
            spans.append((start, index))
            start = index + 1
    if masked[start:].strip():
        spans.append((start, len(masked)))
    return spans


@dataclass
class Arguments:
    """Argument list of one call or annotation, raw and masked."""

    raw: str
    masked: str
    constants: dict[str, str] = field(default_factory=dict)

    def spans(self) -> list[tuple[int, int]]:
        return split_arguments(self.masked)

    def values_at(self, start: int, end: int) -> list[str]:
        """Resolved literal values of one argument expression.

        Array initializers yield one value per element.
        """
        masked = self.masked[start:end]
        stripped = masked.strip()
        if stripped.startswith("{") and stripped.endswith("}"):
            inner_start = start + masked.index("{") + 1
            inner_end = start + masked.rindex("}")
            inner = Arguments(
                self.raw[inner_start:inner_end], self.masked[inner_start:inner_end], self.constants
            )
            values: list[str] = []
            for span in inner.spans():
                values.extend(inner.values_at(*span))
            return values

        # "a" + CONSTANT + "b": join when every term resolves, else first resolved term
        terms = []
        offset = start
        for segment in masked.split("+"):
            terms.append(self._term(self.raw[offset : offset + len(segment)].strip()))
            offset += len(segment) + 1
        resolved = [t for t in terms if t is not None]
        if not resolved:
            return []
        return ["".join(resolved)] if len(resolved) == len(terms) else [resolved[0]]

    def _term(self, expression: str) -> str | None:
        if expression.startswith('"'):
            return first_string_literal(expression)
        reference = _CONSTANT_REFERENCE.match(expression)
        if reference:
            return self.constants.get(reference.group(1))
        return None

    def named(self, *names: str) -> list[str] | None:
        """Values of the first named attribute present, None if none is."""
        for start, end in self.spans():
            match = _NAMED_ARGUMENT.match(self.masked[start:end])
            if match and match.group(1) in names:
                return self.values_at(start + match.end(), end)
        return None

    def positional(self, index: int = 0) -> list[str]:
        """Values of the index-th argument if it is not a named attribute."""
        spans = self.spans()
        if index >= len(spans):
            return []
        start, end = spans[index]
        if _NAMED_ARGUMENT.match(self.masked[start:end]):
            return []
        return self.values_at(start, end)

    def first_value(self, *names: str) -> str | None:
        """First value of a named attribute, falling back to the first positional one."""
        values = self.named(*names) if names else None
        if values is None:
            values = self.positional(0)
        return values[0] if values else None


@dataclass
class SourceContext:
    """One Java file prepared for communication detection."""

    source_file: SourceFile
    source_service: str
    masked: str = ""
    constants: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.masked:
            self.masked = mask_source(self.source_file.text)
        if not self.constants:
            self.constants = string_constants(self.source_file.text)

    @property
    def class_name(self) -> str:
        return PurePosixPath(self.source_file.relative_path).stem

    def arguments(self, open_paren: int) -> Arguments:
        """Arguments of the parenthesized group opening at open_paren."""
        end = skip_parenthesized(self.masked, open_paren)
        return Arguments(
            self.source_file.text[open_paren + 1 : end - 1],
            self.masked[open_paren + 1 : end - 1],
            self.constants,
        )

    def statement_bounds(self, offset: int) -> tuple[int, int]:
        """Bounds of the statement around offset, delimited by ; { or }."""
        start = max(self.masked.rfind(ch, 0, offset) for ch in ";{}") + 1
        end = self.masked.find(";", offset)
        return start, end if end != -1 else len(self.masked)


def _edge(
    context: SourceContext, communication_type: CommunicationType, **kwargs
) -> CommunicationEdge:
    return CommunicationEdge(
        source_service=context.source_service,
        communication_type=communication_type,
        class_name=context.class_name,
        **kwargs,
    )


class CommunicationScanner:
    """Detects outbound and messaging communication in Java sources."""

    def detectors(self) -> list[tuple[str, Callable[[SourceContext], list[CommunicationEdge]]]]:
        """Independent detectors, in reporting order."""
        return [
            ("feign", self.detect_feign_clients),
            ("rest-template", self.detect_rest_template_calls),
            ("web-client", self.detect_web_client_calls),
            ("kafka", self.detect_kafka),
            ("rabbitmq", self.detect_rabbitmq),
        ]

    def detect_feign_clients(self, context: SourceContext) -> list[CommunicationEdge]:
        """@FeignClient(name = "...", url = "...") declarations."""
        edges = []
        for match in FEIGN_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            name = args.first_value("name", "value")
            url_values = args.named("url")
            url = url_values[0] if url_values else None
            edges.append(
                _edge(
                    context,
                    CommunicationType.FEIGN_CLIENT,
                    target_service=name or service_name_from_url(url),
                    target_url=url,
                    is_load_balanced=url is None or url.startswith(LOAD_BALANCED_SCHEME),
                    description=f"Feign client {name or url or 'unnamed'}",
                )
            )
        return edges

    def detect_rest_template_calls(self, context: SourceContext) -> list[CommunicationEdge]:
        """restTemplate.getForObject(...), exchange(...) and similar calls."""
        load_balanced_bean = bool(LOAD_BALANCED_ANNOTATION.search(context.masked))
        edges = []
        for match in REST_TEMPLATE_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            call = match.group(1)
            url = args.first_value()
            http_method = self._rest_template_method(call, args)
            edges.append(
                _edge(
                    context,
                    CommunicationType.REST_TEMPLATE,
                    target_service=service_name_from_url(url),
                    target_url=url,
                    http_method=http_method,
                    is_load_balanced=load_balanced_bean
                    or bool(url and url.startswith(LOAD_BALANCED_SCHEME)),
                    description=f"RestTemplate {http_method} {url or call}",
                )
            )
        return edges

    @staticmethod
    def _rest_template_method(call: str, args: Arguments) -> str:
        if call.lower() == "exchange":
            verb = HTTP_METHOD_ARGUMENT.search(args.masked)
            return verb.group(1) if verb else "GET"
        lowered = call.lower()
        for verb in ("post", "put", "delete", "patch"):
            if verb in lowered:
                return verb.upper()
        return "GET"

    def detect_web_client_calls(self, context: SourceContext) -> list[CommunicationEdge]:
        """webClient.get().uri(...) chains."""
        base_url = self._web_client_base_url(context)
        edges = []
        for match in WEB_CLIENT_URI_PATTERN.finditer(context.masked):
            start, end = context.statement_bounds(match.start())
            statement = context.masked[start:end]
            if not WEB_CLIENT_RECEIVER.search(statement):
                continue
            args = context.arguments(match.end() - 1)
            url = args.first_value()
            verbs = WEB_CLIENT_VERB_PATTERN.findall(context.masked[start : match.start()])
            http_method = verbs[-1].upper() if verbs else None
            if http_method is None:
                method_arg = HTTP_METHOD_ARGUMENT.search(context.masked[start : match.start()])
                http_method = method_arg.group(1) if method_arg else "GET"

            target = service_name_from_url(url) or service_name_from_url(base_url)
            is_async = bool(REACTIVE_MARKER.search(statement)) and not BLOCKING_CALL.search(
                statement
            )
            edges.append(
                _edge(
                    context,
                    CommunicationType.WEB_CLIENT,
                    target_service=target,
                    target_url=url,
                    http_method=http_method,
                    is_load_balanced=any(
                        u and u.startswith(LOAD_BALANCED_SCHEME) for u in (url, base_url)
                    )
                    or bool(LOAD_BALANCED_ANNOTATION.search(context.masked)),
                    is_async=is_async,
                    description=f"WebClient {http_method} {url or ''}".rstrip(),
                )
            )
        return edges

    @staticmethod
    def _web_client_base_url(context: SourceContext) -> str | None:
        match = WEB_CLIENT_BASE_URL.search(context.masked)
        if match is None:
            return None
        args = context.arguments(match.end() - 1)
        return args.first_value()

    def detect_kafka(self, context: SourceContext) -> list[CommunicationEdge]:
        """@KafkaListener topics (consumer) and kafkaTemplate.send (producer)."""
        edges = []
        for match in KAFKA_LISTENER_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            topics = args.named("topics")
            if topics is None:
                topics = args.positional(0)
            for topic in topics or [None]:
                edges.append(self._messaging_edge(context, CommunicationType.KAFKA, topic, False))

        for match in KAFKA_SEND_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            topic = args.first_value()
            edges.append(self._messaging_edge(context, CommunicationType.KAFKA, topic, True))
        return edges

    def detect_rabbitmq(self, context: SourceContext) -> list[CommunicationEdge]:
        """@RabbitListener queues (consumer) and rabbitTemplate.convertAndSend (producer)."""
        edges = []
        for match in RABBIT_LISTENER_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            queues = args.named("queues")
            if queues is None:
                queues = args.positional(0)
            for queue in queues or [None]:
                edges.append(
                    self._messaging_edge(context, CommunicationType.RABBITMQ, queue, False)
                )

        for match in RABBIT_SEND_PATTERN.finditer(context.masked):
            args = context.arguments(match.end() - 1)
            exchange = args.first_value()
            edges.append(
                self._messaging_edge(context, CommunicationType.RABBITMQ, exchange, True)
            )
        return edges

    @staticmethod
    def _messaging_edge(
        context: SourceContext,
        communication_type: CommunicationType,
        channel: str | None,
        producer: bool,
    ) -> CommunicationEdge:
        role = "producer" if producer else "consumer"
        technology = "Kafka" if communication_type == CommunicationType.KAFKA else "RabbitMQ"
        return _edge(
            context,
            communication_type,
            channel=f"{channel} ({role})" if channel else None,
            is_async=True,
            description=f"{technology} {role} {channel or ''}".rstrip(),
        )
