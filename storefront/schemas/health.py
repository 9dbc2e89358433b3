from storefront.schemas.common import CamelModel


class HealthResponse(CamelModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]
