"""
Result types returned by the scoring engine.

ScoringResult is the ONLY return type of a scoring pass. Its flat
payload is a persisted contract: dashboards index into it by
'<scoreKey>_score' / '<scoreKey>_maxScore' and read it back unmodified.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from mentorship.contracts import Diagnostic, ScoreResult


OVERALL_SCORE_KEY = "overallScore"


class DuplicateScoreKeyError(ValueError):
    """Two nodes tried to export under the same score key in one pass."""


class ScoringDiagnosticsError(ValueError):
    """
    Raised on request when a scoring pass produced diagnostics.

    Attributes:
        diagnostics: Every diagnostic from the pass, in emission order
    """

    def __init__(self, diagnostics: Tuple[Diagnostic, ...]):
        self.diagnostics = tuple(diagnostics)
        lines = [f"{d.code} at {d.node}: {d.message}" for d in self.diagnostics]
        super().__init__(
            f"Scoring produced {len(lines)} diagnostic(s):\n  - " + "\n  - ".join(lines)
        )


@dataclass(frozen=True)
class AggregateResult:
    """
    Output of the score aggregator.

    Attributes:
        per_node_scores: Export key -> result for every subgroup, symptom
            and group roll-up, in schema order
        overall: assessment + decision + treatment
        item_scores: Answer key -> result for every item that was
            relevant and answered yes/no in this pass
    """
    per_node_scores: Mapping[str, ScoreResult]
    overall: ScoreResult
    item_scores: Mapping[str, ScoreResult] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoringResult:
    """
    Complete, internally consistent result of one scoring pass.

    Attributes:
        per_node_scores: Section, subgroup and symptom results
        overall: Overall (score, maxScore)
        kpis: Derived indicator results
        diagnostics: Problems found during the pass
        skipped_nodes: Nodes degraded to not-relevant because of an error
    """
    per_node_scores: Mapping[str, ScoreResult]
    overall: ScoreResult
    kpis: Mapping[str, ScoreResult]
    diagnostics: Tuple[Diagnostic, ...] = ()
    skipped_nodes: Tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.diagnostics

    def get(self, key: str) -> ScoreResult:
        """Look up any exported result by key (nodes, KPIs or overallScore)."""
        if key == OVERALL_SCORE_KEY:
            return self.overall
        if key in self.per_node_scores:
            return self.per_node_scores[key]
        return self.kpis[key]

    def to_payload(self) -> Dict[str, int]:
        """
        Flatten to the persisted payload shape.

        Returns:
            dict: {'<key>_score': int, '<key>_maxScore': int, ...} for every
                node and KPI, plus the reserved overallScore pair

        Raises:
            DuplicateScoreKeyError: If a KPI key shadows a node key
        """
        payload: Dict[str, int] = {}
        seen: List[str] = []
        entries = list(self.per_node_scores.items())
        entries.append((OVERALL_SCORE_KEY, self.overall))
        entries.extend(self.kpis.items())

        for key, result in entries:
            if key in seen:
                raise DuplicateScoreKeyError(f"Score key '{key}' exported twice")
            seen.append(key)
            payload[f"{key}_score"] = result.score
            payload[f"{key}_maxScore"] = result.max_score

        return payload

    def raise_for_diagnostics(self) -> None:
        """Raise ScoringDiagnosticsError if the pass was not clean."""
        if self.diagnostics:
            raise ScoringDiagnosticsError(self.diagnostics)
