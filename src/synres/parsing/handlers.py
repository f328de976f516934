"""
Registry content handlers.

Non-XML registry files (and XML files no requested tag matched) are offered
to an ordered chain of handlers. Each handler pairs a cheap predicate with a
builder; the first handler whose predicate accepts the file produces the
resource and the rest are skipped. New content kinds are added by
registering another handler, not by editing existing ones.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Protocol

import yaml

from ..core.types import RegistryResource, RequestedResource, ResourceOrigin
from .classifier import DATA_MAPPER, SCHEMA, SWAGGER, TypeClassifier

logger = logging.getLogger(__name__)

REGISTRY_PARTITIONS = ("gov", "conf")


@dataclass
class RegistryFileContext:
    """A registry file being classified, with the root its key is relative to."""
    file_path: Path
    registry_root: Path

    @property
    def extension(self) -> str:
        return self.file_path.suffix.lstrip(".").lower()

    @property
    def relative_parts(self) -> tuple:
        return self.file_path.relative_to(self.registry_root).parts


def registry_key(file_path: Path, registry_root: Path) -> tuple[str, ResourceOrigin]:
    """
    Key a registry file by its location.

    Files under ``registry/gov`` or ``registry/conf`` get ``gov:`` /
    ``conf:`` keys relative to their partition; anything else gets a
    ``resources:`` key relative to the registry root.
    """
    parts = file_path.relative_to(registry_root).parts
    if len(parts) > 2 and parts[0] == "registry" and parts[1] in REGISTRY_PARTITIONS:
        return f"{parts[1]}:{'/'.join(parts[2:])}", ResourceOrigin.REGISTRY
    return f"resources:{'/'.join(parts)}", ResourceOrigin.RESOURCES


def build_registry_resource(
    ctx: RegistryFileContext, resource_type: str, name: str | None = None
) -> RegistryResource:
    """Create a registry resource; the name defaults to the file name."""
    key, origin = registry_key(ctx.file_path, ctx.registry_root)
    return RegistryResource(
        name=name or ctx.file_path.name,
        type=resource_type.replace(":", ""),
        origin=origin,
        path=str(ctx.file_path),
        artifact_path=ctx.file_path.name,
        registry_key=key,
        registry_path=str(ctx.file_path),
    )


class RegistryHandler(Protocol):
    """
    Handler interface for registry content.

    Any class implementing this protocol can be registered on a
    HandlerChain.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def priority(self) -> int:
        """Higher numbers are consulted first."""
        ...

    def can_handle(self, ctx: RegistryFileContext) -> bool:
        ...

    def handle(self, ctx: RegistryFileContext) -> RegistryResource:
        ...


class SwaggerHandler:
    """OpenAPI/Swagger definitions stored as YAML or JSON."""

    EXTENSIONS = {"yaml", "yml", "json"}

    @property
    def name(self) -> str:
        return SWAGGER

    @property
    def priority(self) -> int:
        return 100

    def can_handle(self, ctx: RegistryFileContext) -> bool:
        if ctx.extension not in self.EXTENSIONS:
            return False
        try:
            with open(ctx.file_path, "r", encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except (yaml.YAMLError, OSError, UnicodeDecodeError):
            return False
        return isinstance(document, dict) and ("swagger" in document or "openapi" in document)

    def handle(self, ctx: RegistryFileContext) -> RegistryResource:
        return build_registry_resource(ctx, SWAGGER)


class SchemaHandler:
    """XML and JSON schemas."""

    EXTENSIONS = {"xsd", "json"}

    @property
    def name(self) -> str:
        return SCHEMA

    @property
    def priority(self) -> int:
        return 80

    def can_handle(self, ctx: RegistryFileContext) -> bool:
        return ctx.extension in self.EXTENSIONS

    def handle(self, ctx: RegistryFileContext) -> RegistryResource:
        return build_registry_resource(ctx, SCHEMA)


class DataMapperHandler:
    """Data-mapper configurations kept under a ``datamapper`` folder."""

    EXTENSIONS = {"ts", "dmc"}

    @property
    def name(self) -> str:
        return DATA_MAPPER

    @property
    def priority(self) -> int:
        return 60

    def can_handle(self, ctx: RegistryFileContext) -> bool:
        return ctx.extension in self.EXTENSIONS and "datamapper" in ctx.relative_parts[:-1]

    def handle(self, ctx: RegistryFileContext) -> RegistryResource:
        return build_registry_resource(ctx, DATA_MAPPER)


class GenericHandler:
    """Any file whose extension names one of the requested types."""

    def __init__(self, requested_types: Iterable[str]):
        self.requested_types = {t.lower() for t in requested_types}

    @property
    def name(self) -> str:
        return "generic"

    @property
    def priority(self) -> int:
        return 0

    def can_handle(self, ctx: RegistryFileContext) -> bool:
        return ctx.extension in self.requested_types

    def handle(self, ctx: RegistryFileContext) -> RegistryResource:
        return build_registry_resource(ctx, TypeClassifier.classify_extension(ctx.file_path.name))


class HandlerChain:
    """
    Ordered registry handlers; the first one that accepts a file wins.
    """

    def __init__(self):
        self._handlers: List[RegistryHandler] = []

    def register(self, handler: RegistryHandler) -> None:
        """Register a handler and keep the chain sorted by priority."""
        self._handlers.append(handler)
        # Sort descending by priority (100 -> 0)
        self._handlers.sort(key=lambda h: -h.priority)

    @property
    def handlers(self) -> List[RegistryHandler]:
        return list(self._handlers)

    def __bool__(self) -> bool:
        return bool(self._handlers)

    def handle(self, ctx: RegistryFileContext) -> RegistryResource | None:
        for handler in self._handlers:
            if handler.can_handle(ctx):
                logger.debug(f"{handler.name} handled {ctx.file_path}")
                return handler.handle(ctx)
        return None


def build_handler_chain(requests: Iterable[RequestedResource]) -> HandlerChain:
    """
    Assemble the chain for a request.

    Swagger, schema and data-mapper handlers join only when their type was
    requested with a registry lookup. The generic handler joins when any
    other type was requested.
    """
    requests = list(requests)
    wanted = {r.type for r in requests if r.need_registry}
    chain = HandlerChain()

    if SWAGGER in wanted:
        chain.register(SwaggerHandler())
    if SCHEMA in wanted:
        chain.register(SchemaHandler())
    if DATA_MAPPER in wanted:
        chain.register(DataMapperHandler())

    specialised = {SWAGGER, SCHEMA, DATA_MAPPER}
    others = [r.type for r in requests if r.type not in specialised]
    if others:
        chain.register(GenericHandler(others))

    return chain


def build_scan_chain(classifier: TypeClassifier) -> HandlerChain:
    """
    Assemble the chain used when listing a whole registry.

    Every specialised handler joins. The generic handler accepts the
    extensions of registry-only types, so files of no known kind are dropped.
    """
    chain = HandlerChain()
    chain.register(SwaggerHandler())
    chain.register(SchemaHandler())
    chain.register(DataMapperHandler())
    chain.register(GenericHandler(classifier.registry_only))
    return chain
