"""Unit tests for the security scanner."""

import pytest

from springlens.analyzers.security import SecurityScanner, is_placeholder
from springlens.models import FileCorpus
from springlens.models.corpus import SourceFile
from springlens.models.security import (
    FindingCategory,
    SecurityFinding,
    Severity,
    top_findings,
    truncate_snippet,
)


@pytest.fixture
def scanner() -> SecurityScanner:
    """Create a sequential scanner."""
    return SecurityScanner()


def categories(findings: list[SecurityFinding]) -> list[FindingCategory]:
    """Categories of findings, in order."""
    return [f.category for f in findings]


class TestSecretDetection:
    """Tests for hardcoded secret detection."""

    def test_hardcoded_password(self, scanner: SecurityScanner) -> None:
        """Test that a literal password is reported with its line."""
        source = SourceFile(
            "src/Db.java",
            'class Db {\n    private String password = "hunter2";\n}\n',
        )

        findings = scanner.detect_hardcoded_secrets(source)

        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH
        assert findings[0].line_number == 2
        assert findings[0].file_name == "src/Db.java"

    @pytest.mark.parametrize(
        "value",
        ['password = "${DB_PASSWORD}"', 'api_key = "changeme"', 'token = "your-token-here"'],
    )
    def test_placeholders_are_ignored(self, value: str) -> None:
        """Test that template and dummy values are not secrets."""
        assert is_placeholder(value)

    def test_secret_in_properties(self, scanner: SecurityScanner) -> None:
        """Test that configuration files are scanned for quoted secrets."""
        source = SourceFile("application.properties", 'app.secret="s3cr3t-value"\n')

        assert categories(scanner.scan_file(source)) == [FindingCategory.HARDCODED_SECRET]


class TestSourceDetectors:
    """Tests for Java source detectors."""

    def test_sql_concatenation(self, scanner: SecurityScanner) -> None:
        """Test SQL built by concatenation next to a query execution."""
        source = SourceFile(
            "Repo.java",
            'class Repo {\n  List<User> find(String name) {\n'
            '    return em.createQuery("SELECT u FROM User u WHERE u.name = " + name)'
            ".getResultList();\n  }\n}\n",
        )

        findings = scanner.detect_sql_injection(source)

        assert len(findings) == 1
        assert findings[0].severity == Severity.CRITICAL
        assert findings[0].line_number == 3

    def test_sql_without_execution_marker(self, scanner: SecurityScanner) -> None:
        """Test that concatenated SQL text alone is not reported."""
        source = SourceFile("Log.java", 'class Log { String s = "SELECT " + table; }')

        assert scanner.detect_sql_injection(source) == []

    def test_command_execution(self, scanner: SecurityScanner) -> None:
        """Test Runtime.exec and ProcessBuilder usage."""
        source = SourceFile(
            "Shell.java",
            "class Shell {\n"
            "  void a() { Runtime.getRuntime().exec(cmd); }\n"
            "  void b() { new ProcessBuilder(cmd).start(); }\n"
            "}\n",
        )

        findings = scanner.detect_command_execution(source)

        assert [f.line_number for f in findings] == [2, 3]

    def test_command_execution_in_comment_ignored(self, scanner: SecurityScanner) -> None:
        """Test that commented-out command execution is not reported."""
        source = SourceFile(
            "Shell.java", "class Shell {\n  // Runtime.getRuntime().exec(cmd);\n}\n"
        )

        assert scanner.detect_command_execution(source) == []

    def test_weak_crypto(self, scanner: SecurityScanner) -> None:
        """Test weak algorithm names in literals."""
        source = SourceFile(
            "Hash.java", 'class Hash { MessageDigest d = MessageDigest.getInstance("MD5"); }'
        )

        findings = scanner.detect_weak_crypto(source)

        assert len(findings) == 1
        assert findings[0].title == "Weak cryptographic algorithm: MD5"

    def test_missing_auth_on_mutating_endpoint(self, scanner: SecurityScanner) -> None:
        """Test controllers with unprotected modifying endpoints."""
        source = SourceFile(
            "AdminController.java",
            "@RestController\npublic class AdminController {\n"
            "    @DeleteMapping(\"/users/{id}\")\n    public void delete(Long id) {}\n}\n",
        )

        findings = scanner.detect_missing_auth(source)

        assert categories(findings) == [FindingCategory.MISSING_AUTH]
        assert findings[0].line_number == 3

    def test_secured_controller(self, scanner: SecurityScanner) -> None:
        """Test that security annotations suppress the finding."""
        source = SourceFile(
            "AdminController.java",
            "@RestController\npublic class AdminController {\n"
            "    @PreAuthorize(\"hasRole('ADMIN')\")\n"
            "    @DeleteMapping(\"/users/{id}\")\n    public void delete(Long id) {}\n}\n",
        )

        assert scanner.detect_missing_auth(source) == []

    def test_auth_flow_post_is_allowed(self, scanner: SecurityScanner) -> None:
        """Test that login and registration POSTs are not reported."""
        source = SourceFile(
            "AuthController.java",
            "@RestController\npublic class AuthController {\n"
            "    @PostMapping(\"/login\")\n    public Token login(Credentials c) {}\n}\n",
        )

        assert scanner.detect_missing_auth(source) == []

    def test_permissive_cors(self, scanner: SecurityScanner) -> None:
        """Test wildcard CORS origins."""
        source = SourceFile(
            "WebConfig.java",
            'class WebConfig {\n  void c(CorsRegistry r) {\n'
            '    r.addMapping("/**").allowedOrigins("*");\n  }\n}\n',
        )

        assert categories(scanner.detect_permissive_cors(source)) == [
            FindingCategory.CORS_MISCONFIGURATION
        ]


class TestConfigDetectors:
    """Tests for configuration detectors."""

    def test_debug_enabled(self, scanner: SecurityScanner) -> None:
        """Test that debug=true yields exactly one LOW finding."""
        source = SourceFile("application.properties", "server.port=8080\ndebug=true\n")

        findings = scanner.scan_file(source)

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.DEBUG_ENABLED
        assert findings[0].severity == Severity.LOW
        assert findings[0].line_number == 2

    def test_debug_disabled(self, scanner: SecurityScanner) -> None:
        """Test that debug=false is not reported."""
        source = SourceFile("application.properties", "debug=false\n")

        assert scanner.scan_file(source) == []

    def test_h2_console_in_yaml(self, scanner: SecurityScanner) -> None:
        """Test that an enabled H2 console is reported from YAML."""
        source = SourceFile(
            "application.yml", "spring:\n  h2:\n    console:\n      enabled: true\n"
        )

        findings = scanner.detect_exposed_consoles(source)

        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH

    def test_h2_console_in_properties(self, scanner: SecurityScanner) -> None:
        """Test that the H2 finding points at the property line."""
        source = SourceFile(
            "application.properties", "server.port=8080\nspring.h2.console.enabled=true\n"
        )

        findings = scanner.detect_exposed_consoles(source)

        assert [f.line_number for f in findings] == [2]

    def test_actuator_exposure(self, scanner: SecurityScanner) -> None:
        """Test that exposing every actuator endpoint is reported."""
        source = SourceFile(
            "application.properties", 'management.endpoints.web.exposure.include="*"\n'
        )

        findings = scanner.detect_exposed_consoles(source)

        assert [f.title for f in findings] == ["All actuator endpoints exposed"]

    def test_malformed_yaml_is_recorded(self, scanner: SecurityScanner) -> None:
        """Test that a YAML parse failure becomes a recoverable error."""
        source = SourceFile("application.yml", "key: [unclosed\n")

        findings = scanner.scan_file(source)

        assert findings == []
        assert len(scanner.errors) == 1
        assert scanner.errors[0].component == "security"
        assert scanner.errors[0].file_path == "application.yml"


class TestSecurityScanner:
    """Tests for corpus-wide scanning."""

    def test_scan_corpus_order(self, scanner: SecurityScanner) -> None:
        """Test findings in corpus order, skipping non-source files."""
        corpus = FileCorpus.from_texts(
            [
                ("b/application.properties", "debug=true\n"),
                ("a/Shell.java", "class Shell { void a() { new ProcessBuilder(cmd); } }"),
                ("README.md", "debug=true\n"),
            ]
        )

        findings = scanner.scan(corpus)

        assert categories(findings) == [
            FindingCategory.DEBUG_ENABLED,
            FindingCategory.COMMAND_INJECTION,
        ]

    def test_clean_corpus(self, scanner: SecurityScanner) -> None:
        """Test that clean sources produce no findings."""
        corpus = FileCorpus.from_texts([("A.java", "public class A {}")])

        assert scanner.scan(corpus) == []


class TestFindingModel:
    """Tests for finding helpers."""

    def test_snippet_truncation(self) -> None:
        """Test that long snippets are cut at the limit."""
        snippet = truncate_snippet("x" * 150)

        assert snippet is not None
        assert len(snippet) == 103
        assert snippet.endswith("...")

    def test_top_findings_by_severity(self) -> None:
        """Test severity ordering that keeps detection order within a severity."""
        findings = [
            SecurityFinding(Severity.LOW, FindingCategory.DEBUG_ENABLED, "low", "", "a"),
            SecurityFinding(Severity.CRITICAL, FindingCategory.SQL_INJECTION, "crit", "", "b"),
            SecurityFinding(Severity.LOW, FindingCategory.DEBUG_ENABLED, "low2", "", "c"),
        ]

        assert [f.title for f in top_findings(findings, limit=2)] == ["crit", "low"]
