"""Reference catalog of recon instances and servers, plus free-text resolution."""

from importlib import resources
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from reconops.core.models import MtpAccount

logger = structlog.get_logger(__name__)


class CatalogError(Exception):
    """Raised when reference data cannot be loaded or is inconsistent."""
    pass


class ReconInstance(BaseModel):
    """A reconciliation instance (INV, SNPB, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    server_ref: str
    delayed_recons: tuple[str, ...] = ()
    high_mtp_accounts: tuple[MtpAccount, ...] = ()


class ServerStats(BaseModel):
    """Resource gauges of a recon server. Percentages are utilisation."""

    model_config = ConfigDict(frozen=True)

    id: str
    cpu: float
    memory: float
    active_jobs: int
    connection_pool: float
    instance_ref: str


class ReferenceCatalog(BaseModel):
    """In-memory reference data.

    Identifier order is significant: resolution walks instances and servers in
    the order they were declared and returns the first one mentioned.
    """

    model_config = ConfigDict(frozen=True)

    instances: dict[str, ReconInstance] = Field(default_factory=dict)
    servers: dict[str, ServerStats] = Field(default_factory=dict)
    job_dependencies: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ReferenceCatalog":
        """Build a catalog from the raw YAML structure.

        Args:
            data: Mapping with ``instances``, ``servers`` and ``job_dependencies``

        Returns:
            Validated ReferenceCatalog

        Raises:
            CatalogError: If the data is malformed or cross references dangle
        """
        try:
            catalog = cls(
                instances={
                    key: ReconInstance(id=key, **value)
                    for key, value in (data.get("instances") or {}).items()
                },
                servers={
                    key: ServerStats(id=key, **value)
                    for key, value in (data.get("servers") or {}).items()
                },
                job_dependencies=data.get("job_dependencies") or {},
            )
        except (ValidationError, TypeError) as e:
            raise CatalogError(f"Invalid catalog data: {e}") from e

        for inst in catalog.instances.values():
            if inst.server_ref not in catalog.servers:
                raise CatalogError(f"Instance {inst.id} references unknown server {inst.server_ref}")
        for srv in catalog.servers.values():
            if srv.instance_ref not in catalog.instances:
                raise CatalogError(f"Server {srv.id} references unknown instance {srv.instance_ref}")

        return catalog

    @classmethod
    def load(cls, path: Path | str | None = None) -> "ReferenceCatalog":
        """Load a catalog from YAML.

        Args:
            path: YAML file to read (the packaged catalog when None)

        Returns:
            Validated ReferenceCatalog
        """
        try:
            if path is None:
                text = resources.files("reconops.domain").joinpath("catalog.yaml").read_text(
                    encoding="utf-8"
                )
            else:
                text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Could not read catalog {path or 'catalog.yaml'}: {e}") from e

        catalog = cls.from_dict(data)
        logger.debug(
            "catalog_loaded",
            path=str(path) if path else "packaged",
            instances=len(catalog.instances),
            servers=len(catalog.servers),
        )
        return catalog

    def resolve_instance(self, text: str) -> ReconInstance | None:
        """Find the first instance whose id appears in the text, ignoring case."""
        upper = text.upper()
        for key, instance in self.instances.items():
            if key.upper() in upper:
                return instance
        return None

    def resolve_server(self, text: str) -> ServerStats | None:
        """Find the server mentioned in the text.

        Falls back to the server of a mentioned instance when no server id
        appears.
        """
        upper = text.upper()
        for key, server in self.servers.items():
            if key.upper() in upper:
                return server

        instance = self.resolve_instance(text)
        if instance:
            return self.servers.get(instance.server_ref)
        return None

    def get_dependencies(self, recons: list[str] | tuple[str, ...]) -> list[str]:
        """Upstream jobs for the given recons, de-duplicated in first-seen order."""
        deps: dict[str, None] = {}
        for recon in recons:
            for dep in self.job_dependencies.get(recon, ()):
                deps.setdefault(dep, None)
        return list(deps)


# Global catalog instance
_catalog: ReferenceCatalog | None = None


def get_catalog() -> ReferenceCatalog:
    """Get or load the packaged reference catalog."""
    global _catalog
    if _catalog is None:
        _catalog = ReferenceCatalog.load()
    return _catalog
