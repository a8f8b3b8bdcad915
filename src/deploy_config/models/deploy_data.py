"""Models for the deploy data catalog sent by the server.

The catalog lists which service images, tags and sizes are available and
carries the pricing constants. It is trusted input: fields are typed but
not cross-checked.

Example:
{
    "services": [
        {"type": "postgres", "name": "PostgreSQL", "images": "postgres",
         "tags": ["16", "15"], "hub": "https://hub.docker.com/_/postgres/"}
    ],
    "sizes": [
        {"name": "pico", "memory": {"name": "128M", "value": 128},
         "cpus": 0.1, "storage": "1G", "ports": 1}
    ],
    "baseValue": 1024,
    "baseCost": 1
}
"""

from pydantic import BaseModel, Field


class CatalogService(BaseModel):
    """One service type the server knows how to run."""

    type: str
    name: str | None = None
    images: str | None = None
    tags: list[str] = Field(default_factory=list)
    hub: str | None = None

    model_config = {"coerce_numbers_to_str": True}


class SizeMemory(BaseModel):
    name: str | None = None
    value: float


class ServiceSize(BaseModel):
    """Resource tier. ports is how many public ports the tier allows."""

    name: str
    memory: SizeMemory
    cpus: float | None = None
    storage: str | None = None
    ports: int = 0


class DeployData(BaseModel):
    """Root model of the server catalog."""

    services: list[CatalogService] = Field(default_factory=list)
    sizes: list[ServiceSize] = Field(default_factory=list)
    base_value: float = Field(alias="baseValue")
    base_cost: float = Field(alias="baseCost")

    model_config = {"populate_by_name": True}

    def size(self, name: str | None) -> ServiceSize | None:
        return next((s for s in self.sizes if s.name == name), None)

    def size_index(self, name: str | None) -> int | None:
        for index, size in enumerate(self.sizes):
            if size.name == name:
                return index
        return None

    def service(self, service_type: str | None) -> CatalogService | None:
        return next((s for s in self.services if s.type == service_type), None)

    def size_names(self) -> list[str]:
        return [s.name for s in self.sizes]


def check_version(deploy_data: DeployData, service_type: str | None, version: str) -> bool:
    """Is version one of the catalog tags for the service type."""
    service = deploy_data.service(service_type)
    if service is None:
        return False
    return version in service.tags
