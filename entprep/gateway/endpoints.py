"""
Logical Endpoint Registry

Maps every (service, operation) pair the gateway understands to its remote
HTTP call and to its local handler. Handlers are named by attribute on
LocalDataSource; a ``mirror`` handler runs after a successful remote call.
"""

from dataclasses import dataclass
from enum import Enum
from string import Formatter
from typing import Any, Dict, Optional, Tuple


class EndpointKind(str, Enum):
    """How an operation treats state."""
    READ = "read"
    WRITE = "write"
    APPEND = "append"


@dataclass(frozen=True)
class Endpoint:
    """
    One logical gateway operation.

    Attributes:
        service: Logical service (auth, tests, analytics)
        operation: Operation name within the service
        method: Remote HTTP method
        path: Remote path template, formatted with the call parameters
        kind: Read, idempotent write or strictly additive append
        local: LocalDataSource handler serving the operation locally
        mirror: LocalDataSource handler applied after a remote success
        body_param: Parameter sent as the whole request body; when unset,
            the remaining parameters form the body of non-GET calls
    """
    service: str
    operation: str
    method: str
    path: str
    kind: EndpointKind
    local: str
    mirror: Optional[str] = None
    body_param: Optional[str] = None

    @property
    def is_write(self) -> bool:
        return self.kind is not EndpointKind.READ

    def path_params(self) -> Tuple[str, ...]:
        return tuple(name for _, name, _, _ in Formatter().parse(self.path) if name)

    def build_path(self, params: Dict[str, Any]) -> str:
        return self.path.format(**{name: params[name] for name in self.path_params()})

    def build_body(self, params: Dict[str, Any]) -> Optional[Any]:
        if self.body_param:
            return params.get(self.body_param)
        if self.method == "GET":
            return None
        path_params = self.path_params()
        return {k: v for k, v in params.items() if k not in path_params}


ENDPOINTS: Dict[Tuple[str, str], Endpoint] = {
    (e.service, e.operation): e for e in (
        Endpoint("auth", "login", "POST", "/auth/login", EndpointKind.WRITE,
                 local="login", mirror="remember_user"),
        Endpoint("auth", "register", "POST", "/auth/register", EndpointKind.WRITE,
                 local="register", mirror="remember_user"),
        Endpoint("auth", "logout", "POST", "/auth/logout", EndpointKind.WRITE,
                 local="logout", mirror="mirror_logout"),
        Endpoint("auth", "currentUser", "GET", "/auth/current-user", EndpointKind.READ,
                 local="current_user"),
        Endpoint("auth", "appendHistory", "POST", "/auth/test-history", EndpointKind.APPEND,
                 local="append_history", mirror="mirror_append_history", body_param="attempt"),
        Endpoint("tests", "list", "GET", "/tests", EndpointKind.READ,
                 local="list_tests", mirror="cache_catalog"),
        Endpoint("tests", "getById", "GET", "/tests/{id}", EndpointKind.READ,
                 local="get_test"),
        Endpoint("tests", "saveResult", "POST", "/tests/results", EndpointKind.APPEND,
                 local="save_result", mirror="mirror_save_result", body_param="attempt"),
        Endpoint("tests", "listResults", "GET", "/tests/results", EndpointKind.READ,
                 local="list_results"),
        Endpoint("tests", "listResultsForTest", "GET", "/tests/{testId}/results", EndpointKind.READ,
                 local="list_results_for_test"),
        Endpoint("tests", "analyze", "POST", "/tests/performance", EndpointKind.READ,
                 local="analyze"),
        Endpoint("analytics", "feedback", "POST", "/ai/feedback", EndpointKind.READ,
                 local="feedback"),
    )
}


def get_endpoint(service: str, operation: str) -> Optional[Endpoint]:
    return ENDPOINTS.get((service, operation))
