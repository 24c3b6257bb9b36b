"""Structural tests for route code.

Routes stay transport-only:
- No SQLAlchemy imports beyond the Session type
- No imports from switchboard.db (get_db comes through switchboard.api.deps)
- No raw db.execute / db.scalar / db.query calls
- Every handler returns dict (success envelope) or Response
"""

import ast
from pathlib import Path

import pytest

ROUTES_DIR = Path(__file__).parent.parent / "switchboard" / "api" / "routes"

ALLOWED_MODULE_PREFIXES = (
    "fastapi",
    "typing",
    "uuid",
    "sqlalchemy.orm",
    "switchboard.api.deps",
    "switchboard.responses",
    "switchboard.errors",
    "switchboard.schemas",
    "switchboard.services",
)

RAW_DB_CALLS = ("execute", "scalar", "scalars", "query", "add", "commit")


def _route_files() -> list[Path]:
    return sorted(f for f in ROUTES_DIR.iterdir() if f.suffix == ".py" and f.name != "__init__.py")


def _handlers(tree: ast.Module):
    for node in ast.walk(tree):
        if not isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
            continue
        for decorator in node.decorator_list:
            if (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Attribute)
                and isinstance(decorator.func.value, ast.Name)
                and decorator.func.value.id == "router"
            ):
                yield node
                break


@pytest.fixture(params=_route_files(), ids=lambda p: p.name)
def route_file(request) -> Path:
    return request.param


class TestRouteImports:
    """Route modules import only transport-level modules."""

    def test_route_files_exist(self):
        names = {f.name for f in _route_files()}
        assert {"auth.py", "contacts.py", "groups.py", "messages.py", "notifications.py"} <= names

    def test_only_allowed_imports(self, route_file: Path):
        tree = ast.parse(route_file.read_text())
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                modules = [alias.name for alias in node.names]
            elif isinstance(node, ast.ImportFrom) and node.module:
                modules = [node.module]
            else:
                continue
            for module in modules:
                assert module.startswith(ALLOWED_MODULE_PREFIXES), (
                    f"{route_file.name}: forbidden import '{module}'"
                )

    def test_sqlalchemy_orm_only_for_session(self, route_file: Path):
        tree = ast.parse(route_file.read_text())
        for node in ast.walk(tree):
            if isinstance(node, ast.ImportFrom) and node.module == "sqlalchemy.orm":
                assert [alias.name for alias in node.names] == ["Session"], (
                    f"{route_file.name}: only 'from sqlalchemy.orm import Session' is allowed"
                )


class TestRouteHandlers:
    """Route handlers delegate to services and return the envelope."""

    def test_no_raw_db_operations(self, route_file: Path):
        tree = ast.parse(route_file.read_text())
        for node in ast.walk(tree):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Attribute)
                and isinstance(node.func.value, ast.Name)
                and node.func.value.id in ("db", "session")
                and node.func.attr in RAW_DB_CALLS
            ):
                pytest.fail(
                    f"{route_file.name}: forbidden call "
                    f"'{node.func.value.id}.{node.func.attr}()' in route code"
                )

    def test_module_defines_router(self, route_file: Path):
        tree = ast.parse(route_file.read_text())
        targets = {
            target.id
            for node in ast.walk(tree)
            if isinstance(node, ast.Assign)
            for target in node.targets
            if isinstance(target, ast.Name)
        }
        assert "router" in targets, f"{route_file.name} must define a 'router' object"

    def test_handlers_return_dict_or_response(self, route_file: Path):
        tree = ast.parse(route_file.read_text())
        handlers = list(_handlers(tree))
        assert handlers, f"{route_file.name} has no route handlers"
        for handler in handlers:
            assert isinstance(handler.returns, ast.Name), (
                f"{route_file.name}:{handler.name} needs a return annotation"
            )
            assert handler.returns.id in ("dict", "Response"), (
                f"{route_file.name}:{handler.name} should return dict or Response"
            )
