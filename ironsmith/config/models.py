from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, Field, StrictBool, StrictInt, field_validator

if TYPE_CHECKING:
    from ironsmith.core import Ironsmith


class PluginSpec(BaseModel):
    """One plugin entry: an installable name or local path plus its options."""

    name: str = Field(min_length=1)
    options: dict[str, Any] = Field(default_factory=dict)


class IronsmithConfig(BaseModel):
    source: str = "src"
    destination: str = "build"
    # same values the Ironsmith setters accept: no str-to-bool/int coercion
    clean: StrictBool = True
    frontmatter: StrictBool = True
    concurrency: Annotated[StrictInt, Field(gt=0)] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    ignore: list[str] = Field(default_factory=list)
    plugins: list[PluginSpec] = Field(default_factory=list)
    log_level: Literal["debug", "info", "warn", "error"] = "info"

    @field_validator("plugins", mode="before")
    @classmethod
    def normalize_plugins(cls, v: Any) -> Any:
        """Accept ``{name: opts}`` or ``[{name: opts}, ...]``, keeping order."""
        if v is None:
            return []
        if isinstance(v, dict):
            v = [v]
        if not isinstance(v, list):
            return v
        specs: list[Any] = []
        for entry in v:
            if isinstance(entry, str):
                specs.append({"name": entry})
            elif isinstance(entry, dict) and "name" not in entry:
                for name, options in entry.items():
                    if options is None or options is True:
                        options = {}
                    specs.append({"name": name, "options": options})
            else:
                specs.append(entry)
        return specs

    def apply(self, smith: "Ironsmith") -> None:
        """Copy these settings onto an Ironsmith through its validating setters."""
        smith.source = self.source
        smith.destination = self.destination
        smith.clean = self.clean
        smith.frontmatter = self.frontmatter
        smith.concurrency = self.concurrency
        smith.metadata = self.metadata
        for pattern in self.ignore:
            smith.ignore(pattern)
