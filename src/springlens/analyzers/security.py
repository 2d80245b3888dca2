"""Textual security scanning.

Each detector inspects one file and returns findings. Detectors are
independent: a detector that fails on a file is recorded as an error and
the remaining detectors still run.
"""

import logging
import re
import threading
from collections.abc import Callable

import yaml

from springlens.analyzers.base import AnalysisComponent, line_number_at, parallel_map
from springlens.analyzers.java_text import mask_source
from springlens.analyzers.service_config import flatten_yaml, parse_properties
from springlens.models.corpus import FileCorpus, SourceFile
from springlens.models.security import FindingCategory, SecurityFinding, Severity

logger = logging.getLogger(__name__)

SECRET_PATTERN = re.compile(
    r"(password|passwd|pwd|secret|api[_-]?key|apikey|token|auth)\s*[=:]\s*[\"'][^\"'\n]+[\"']",
    re.IGNORECASE,
)
PLACEHOLDER_MARKERS = ("${", "#{", "{{", "@value")
PLACEHOLDER_WORDS = ("example", "placeholder", "changeme", "change-me", "xxx", "dummy", "your-")

SQL_EXECUTION_MARKERS = ("createQuery", "createNativeQuery", "executeQuery", "executeUpdate")
_SQL_KEYWORDS = r"\b(?:SELECT|INSERT|UPDATE|DELETE|FROM|WHERE)\b"
SQL_CONCAT_PATTERN = re.compile(
    r"\"[^\"\n]*" + _SQL_KEYWORDS + r"[^\"\n]*\"\s*\+\s*\w+"
    r"|\w+\s*\+\s*\"[^\"\n]*" + _SQL_KEYWORDS,
    re.IGNORECASE,
)

EXEC_PATTERN = re.compile(
    r"Runtime\s*\.\s*getRuntime\s*\(\s*\)\s*\.\s*exec\b|\bnew\s+ProcessBuilder\b"
)

WEAK_CRYPTO_PATTERN = re.compile(
    r"\"(MD2|MD5|SHA-?1|DES|DESede|RC2|RC4|Blowfish)(?:/[^\"\n]*)?\""
    r"|\b(Md5PasswordEncoder|ShaPasswordEncoder|LdapShaPasswordEncoder|NoOpPasswordEncoder"
    r"|DigestUtils\s*\.\s*(?:md5|sha1)\w*)\b",
    re.IGNORECASE,
)

CONTROLLER_PATTERN = re.compile(r"@(?:RestController|Controller)\b")
SECURITY_ANNOTATION_PATTERN = re.compile(r"@(?:PreAuthorize|Secured|RolesAllowed|PostAuthorize)\b")
MUTATING_MAPPING_PATTERN = re.compile(r"@(Delete|Put|Patch|Post)Mapping\b")
AUTH_FLOW_PATHS = ("/login", "/register", "/signup", "/signin")

CORS_PATTERN = re.compile(
    r"@CrossOrigin\b(?!\s*\()"
    r"|@CrossOrigin\s*\((?:[^()]|\([^()]*\))*\"\*\""
    r"|\.allowedOrigins\s*\(\s*\"\*\""
    r"|\.allowedOriginPatterns\s*\(\s*\"\*\""
    r"|\.addAllowedOrigin\s*\(\s*\"\*\""
)

DEBUG_PATTERN = re.compile(r"^\s*debug\s*[=:]\s*[\"']?true\b", re.IGNORECASE | re.MULTILINE)

H2_CONSOLE_KEY = "spring.h2.console.enabled"
ACTUATOR_EXPOSURE_KEY = "management.endpoints.web.exposure.include"

Detector = Callable[[SourceFile], list[SecurityFinding]]


def is_placeholder(matched: str) -> bool:
    """Whether a secret-like assignment is a template or dummy value."""
    lowered = matched.lower()
    if any(marker in lowered for marker in PLACEHOLDER_MARKERS):
        return True
    return any(word in lowered for word in PLACEHOLDER_WORDS)


def _line_of(text: str, pattern: str) -> int | None:
    match = re.search(pattern, text, re.MULTILINE)
    return line_number_at(text, match.start()) if match else None


class SecurityScanner(AnalysisComponent):
    """Runs every applicable detector over every Java and configuration file."""

    def __init__(self, workers: int = 1, cancel: threading.Event | None = None) -> None:
        super().__init__("security", cancel)
        self.workers = workers
        self.java_detectors: list[tuple[str, Detector]] = [
            ("hardcoded-secret", self.detect_hardcoded_secrets),
            ("sql-injection", self.detect_sql_injection),
            ("command-injection", self.detect_command_execution),
            ("weak-crypto", self.detect_weak_crypto),
            ("missing-auth", self.detect_missing_auth),
            ("cors", self.detect_permissive_cors),
        ]
        self.config_detectors: list[tuple[str, Detector]] = [
            ("hardcoded-secret", self.detect_hardcoded_secrets),
            ("debug-enabled", self.detect_debug_mode),
            ("exposed-consoles", self.detect_exposed_consoles),
        ]

    def scan(self, corpus: FileCorpus) -> list[SecurityFinding]:
        """Scan the corpus.

        Args:
            corpus: Source corpus

        Returns:
            Findings in corpus order, detector order within a file
        """
        files = [f for f in corpus.files if f.is_java or f.is_config]
        per_file = parallel_map(self.scan_file, files, self.workers, self.cancel)
        findings = [finding for file_findings in per_file for finding in file_findings]
        logger.info(f"Security scan: {len(findings)} finding(s) in {len(files)} file(s)")
        return findings

    def scan_file(self, source_file: SourceFile) -> list[SecurityFinding]:
        """Run the detectors applicable to one file."""
        detectors = self.java_detectors if source_file.is_java else self.config_detectors
        findings: list[SecurityFinding] = []
        for label, detector in detectors:
            result = self.guarded(label, detector, source_file, file_path=source_file.relative_path)
            if result:
                findings.extend(result)
        return findings

    # -------------------------------------------------------------------------
    # Source detectors
    # -------------------------------------------------------------------------

    def detect_hardcoded_secrets(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        findings = []
        for match in SECRET_PATTERN.finditer(text):
            if is_placeholder(match.group(0)):
                continue
            findings.append(
                SecurityFinding(
                    severity=Severity.HIGH,
                    category=FindingCategory.HARDCODED_SECRET,
                    title="Potential hardcoded secret",
                    description="Found potential hardcoded credential or secret key",
                    file_name=source_file.relative_path,
                    line_number=line_number_at(text, match.start()),
                    snippet=match.group(0),
                    recommendation="Use environment variables or a secrets manager",
                )
            )
        return findings

    def detect_sql_injection(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        if not any(marker in text for marker in SQL_EXECUTION_MARKERS):
            return []
        return [
            SecurityFinding(
                severity=Severity.CRITICAL,
                category=FindingCategory.SQL_INJECTION,
                title="Potential SQL injection",
                description="String concatenation in SQL query detected",
                file_name=source_file.relative_path,
                line_number=line_number_at(text, match.start()),
                snippet=match.group(0),
                recommendation="Use parameterized queries or JPA named parameters",
            )
            for match in SQL_CONCAT_PATTERN.finditer(text)
        ]

    def detect_command_execution(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        masked = mask_source(text)
        return [
            SecurityFinding(
                severity=Severity.HIGH,
                category=FindingCategory.COMMAND_INJECTION,
                title="Command execution detected",
                description=(
                    "Direct command execution can lead to command injection "
                    "if user input is involved"
                ),
                file_name=source_file.relative_path,
                line_number=line_number_at(text, match.start()),
                snippet=text[match.start() : match.end()],
                recommendation="Validate and sanitize all input, avoid shell commands if possible",
            )
            for match in EXEC_PATTERN.finditer(masked)
        ]

    def detect_weak_crypto(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        findings = []
        for match in WEAK_CRYPTO_PATTERN.finditer(text):
            algorithm = match.group(1) or match.group(2)
            findings.append(
                SecurityFinding(
                    severity=Severity.MEDIUM,
                    category=FindingCategory.WEAK_CRYPTO,
                    title=f"Weak cryptographic algorithm: {algorithm}",
                    description="Usage of deprecated or weak cryptographic algorithm",
                    file_name=source_file.relative_path,
                    line_number=line_number_at(text, match.start()),
                    snippet=match.group(0),
                    recommendation="Use SHA-256 or stronger algorithms, AES for encryption",
                )
            )
        return findings

    def detect_missing_auth(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        masked = mask_source(text)
        if not CONTROLLER_PATTERN.search(masked) or SECURITY_ANNOTATION_PATTERN.search(masked):
            return []

        auth_flow = any(path in text for path in AUTH_FLOW_PATHS)
        for match in MUTATING_MAPPING_PATTERN.finditer(masked):
            if match.group(1) == "Post" and auth_flow:
                continue
            return [
                SecurityFinding(
                    severity=Severity.MEDIUM,
                    category=FindingCategory.MISSING_AUTH,
                    title="Controller without security annotations",
                    description=(
                        "Controller has modifying endpoints without explicit security annotations"
                    ),
                    file_name=source_file.relative_path,
                    line_number=line_number_at(text, match.start()),
                    recommendation="Add @PreAuthorize, @Secured, or @RolesAllowed annotations",
                )
            ]
        return []

    def detect_permissive_cors(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        match = CORS_PATTERN.search(text)
        if match is None:
            return []
        return [
            SecurityFinding(
                severity=Severity.MEDIUM,
                category=FindingCategory.CORS_MISCONFIGURATION,
                title="Overly permissive CORS configuration",
                description="CORS is configured to allow all origins",
                file_name=source_file.relative_path,
                line_number=line_number_at(text, match.start()),
                snippet=match.group(0),
                recommendation="Restrict CORS to specific trusted origins",
            )
        ]

    # -------------------------------------------------------------------------
    # Configuration detectors
    # -------------------------------------------------------------------------

    def detect_debug_mode(self, source_file: SourceFile) -> list[SecurityFinding]:
        text = source_file.text
        match = DEBUG_PATTERN.search(text)
        if match is None:
            return []
        return [
            SecurityFinding(
                severity=Severity.LOW,
                category=FindingCategory.DEBUG_ENABLED,
                title="Debug mode enabled",
                description="Debug mode should be disabled in production",
                file_name=source_file.relative_path,
                line_number=line_number_at(text, match.start()),
                snippet=match.group(0),
                recommendation="Set debug=false for production deployments",
            )
        ]

    def detect_exposed_consoles(self, source_file: SourceFile) -> list[SecurityFinding]:
        """H2 console and fully exposed actuator endpoints.

        Raises:
            yaml.YAMLError: If a YAML file cannot be parsed
        """
        text = source_file.text
        if source_file.suffix == ".properties":
            properties = parse_properties(text)
        else:
            properties = {}
            for document in yaml.safe_load_all(text):
                for key, value in flatten_yaml(document).items():
                    properties.setdefault(key, value)

        findings = []
        if str(properties.get(H2_CONSOLE_KEY, "")).strip().lower() == "true":
            findings.append(
                SecurityFinding(
                    severity=Severity.HIGH,
                    category=FindingCategory.SENSITIVE_DATA_EXPOSURE,
                    title="H2 Console enabled",
                    description="H2 database console is enabled, exposing database access",
                    file_name=source_file.relative_path,
                    line_number=_line_of(text, r"h2\.console\.enabled"),
                    recommendation="Disable H2 console in production",
                )
            )
        if str(properties.get(ACTUATOR_EXPOSURE_KEY, "")).strip().strip("\"'") == "*":
            findings.append(
                SecurityFinding(
                    severity=Severity.MEDIUM,
                    category=FindingCategory.SENSITIVE_DATA_EXPOSURE,
                    title="All actuator endpoints exposed",
                    description="Every management endpoint is exposed over HTTP",
                    file_name=source_file.relative_path,
                    line_number=_line_of(text, r"exposure\.include"),
                    recommendation="Expose only the health and info endpoints publicly",
                )
            )
        return findings
