"""Shared pytest fixtures for SpringLens tests.

This module provides common fixtures used across unit and integration tests.
Fixtures are organized by category:
- Path fixtures: Sample source trees on disk
- Configuration fixtures: Test configs for various scenarios
- Source fixtures: Java sources and build descriptors held in memory
"""

from pathlib import Path
from typing import Any

import pytest

from springlens.models import FileCorpus

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_repos_dir(fixtures_dir: Path) -> Path:
    """Return the path to sample repository fixtures."""
    return fixtures_dir / "sample_repos"


@pytest.fixture
def spring_repo(sample_repos_dir: Path) -> Path:
    """Return the path to the multi-module Spring sample."""
    return sample_repos_dir / "spring_microservices"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid SpringLens configuration."""
    return {
        "output": {
            "path": "docs/ARCHITECTURE.md",
            "format": "markdown",
        }
    }


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete SpringLens configuration with all options."""
    return {
        "analyzer": {
            "max_walk_depth": 4,
            "max_endpoint_path_length": 120,
            "lookahead_lines": 6,
            "max_flow_paths": 5,
            "top_findings": 3,
            "workers": 4,
            "exclude_dirs": [".git", "target"],
        },
        "output": {
            "path": "docs/ARCHITECTURE.md",
            "format": "json",
        },
        "logging": {
            "mode": "verbose",
            "level": "debug",
        },
    }


# =============================================================================
# Sample Source Fixtures
# =============================================================================


@pytest.fixture
def controller_source() -> str:
    """Return a REST controller with a class-level prefix."""
    return """package com.example.web;

import org.springframework.web.bind.annotation.*;

/**
 * Serves @GetMapping("/ignored") documentation examples.
 */
@RestController
@RequestMapping("/api/x")
public class FooController {

    private final FooService fooService;

    public FooController(FooService fooService) {
        this.fooService = fooService;
    }

    @GetMapping("/y")
    public Foo bar() {
        return fooService.load();
    }

    @PostMapping(value = "/y", consumes = "application/json")
    public ResponseEntity<Foo> create(@RequestBody Foo foo) {
        return ResponseEntity.ok(fooService.save(foo));
    }

    @RequestMapping(value = "/z", method = RequestMethod.DELETE)
    public void remove(@PathVariable Long id) {
        fooService.delete(id);
    }
}
"""


@pytest.fixture
def order_entity_source() -> str:
    """Return a JPA entity with a one-to-many association."""
    return """package com.example.domain;

import jakarta.persistence.*;
import java.util.List;

@Entity
public class Order {

    @Id
    private Long id;

    @OneToMany(mappedBy = "order")
    private List<Item> items;
}
"""


@pytest.fixture
def item_entity_source() -> str:
    """Return a JPA entity referencing its owner."""
    return """package com.example.domain;

import jakarta.persistence.*;

@Entity
public class Item {

    @Id
    private Long id;

    @ManyToOne
    private Order order;
}
"""


@pytest.fixture
def gateway_corpus() -> FileCorpus:
    """Return a two-module corpus with a gateway and a Feign caller."""
    return FileCorpus.from_texts(
        files=[
            (
                "gateway/src/main/resources/application.yml",
                """spring:
  application:
    name: edge
  cloud:
    gateway:
      routes:
        - id: orders
          uri: lb://orders-service
          predicates:
            - Path=/api/orders/**
""",
            ),
            (
                "gateway/src/main/java/com/example/gateway/EdgeApplication.java",
                """package com.example.gateway;

@SpringBootApplication
public class EdgeApplication {
    public static void main(String[] args) {
        SpringApplication.run(EdgeApplication.class, args);
    }
}
""",
            ),
            (
                "billing/src/main/java/com/example/billing/OrdersClient.java",
                """package com.example.billing;

@FeignClient(name = "orders-service")
public interface OrdersClient {
    @GetMapping("/api/orders/{id}")
    Order find(@PathVariable Long id);
}
""",
            ),
        ],
        build_descriptors=[
            (
                "pom.xml",
                "<project><artifactId>parent</artifactId>"
                "<modules><module>gateway</module><module>billing</module></modules></project>",
            ),
            (
                "gateway/pom.xml",
                "<project><artifactId>gateway</artifactId><dependencies><dependency>"
                "<groupId>org.springframework.cloud</groupId>"
                "<artifactId>spring-cloud-starter-gateway</artifactId>"
                "</dependency></dependencies></project>",
            ),
            (
                "billing/pom.xml",
                "<project><artifactId>billing</artifactId><dependencies><dependency>"
                "<groupId>org.springframework.boot</groupId>"
                "<artifactId>spring-boot-starter-web</artifactId>"
                "</dependency><dependency>"
                "<groupId>org.springframework.cloud</groupId>"
                "<artifactId>spring-cloud-starter-openfeign</artifactId>"
                "</dependency></dependencies></project>",
            ),
        ],
        name="shop",
    )
