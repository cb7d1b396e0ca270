from __future__ import annotations

from datetime import datetime, UTC
from uuid import uuid4

from scoutforall.contracts import ForensicArtifact


class EngineIntegrityError(RuntimeError):
    def __init__(self, artifact: ForensicArtifact) -> None:
        super().__init__(artifact.message)
        self.artifact = artifact

    @property
    def error_code(self) -> str:
        return self.artifact.error_code


class LineupError(ValueError):
    """Raised when a lineup operation breaks a rotation or substitution rule."""


def build_forensic_artifact(
    engine_scope: str,
    error_code: str,
    message: str,
    state_snapshot: dict[str, object],
    context: dict[str, object],
    identifiers: dict[str, str],
    causal_fragment: list[str],
) -> ForensicArtifact:
    return ForensicArtifact(
        artifact_id=str(uuid4()),
        timestamp=datetime.now(UTC),
        engine_scope=engine_scope,
        error_code=error_code,
        message=message,
        state_snapshot=state_snapshot,
        context=context,
        identifiers=identifiers,
        causal_fragment=causal_fragment,
    )


def configuration_error(message: str, *, error_code: str, identifiers: dict[str, str], context: dict[str, object] | None = None) -> EngineIntegrityError:
    artifact = build_forensic_artifact(
        engine_scope="set_configuration",
        error_code=error_code,
        message=message,
        state_snapshot={},
        context=dict(context or {}),
        identifiers=identifiers,
        causal_fragment=["set_descriptor", error_code.lower()],
    )
    return EngineIntegrityError(artifact)
