"""Domain models shared by the heuristics, merger, pipeline and renderers."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Style = Literal["modular_monolith", "microservices", "hybrid"]
ContainerType = Literal[
    "web", "api", "db", "broker", "external", "service", "worker", "storage", "observability"
]


class RequirementModel(BaseModel):
    """Normalized description of the system to be architected."""

    goal: str = ""
    actors: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    integrations: list[str] = Field(default_factory=list)
    data_entities: list[str] = Field(default_factory=list)
    key_flows: list[str] = Field(default_factory=list)
    nfrs: dict[str, str] = Field(default_factory=dict)


class Assumption(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    assumption_text: str
    reason: str


class ContainerSpec(BaseModel):
    name: str
    type: ContainerType = "service"
    responsibilities: list[str] = Field(default_factory=list)
    interfaces: list[str] = Field(default_factory=list)


class ArchitectureDecision(BaseModel):
    style: Style = "modular_monolith"
    rationale: list[str] = Field(default_factory=list)
    containers: list[ContainerSpec] = Field(default_factory=list)
    use_message_broker: bool = False
    use_load_balancer: bool = False
    tradeoffs: list[str] = Field(default_factory=list)

    def container_names(self) -> list[str]:
        return [c.name for c in self.containers]


class QualityReport(BaseModel):
    completeness_score: int
    consistency_score: int
    assumption_count: int
    warnings: list[str] = Field(default_factory=list)
