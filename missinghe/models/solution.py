"""
User-facing result of the preparation pipeline.

PreparedModel wraps a Result[ModelConfig] and provides accessors, a
plain-text rendering of the resolved generative specification, and the
data summary that accompanies a fitted model.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from missinghe.core.result import Result
from missinghe.models._common import MechanismShape, ModelFamily
from missinghe.models.config import ModelConfig, SamplerSettings
from missinghe.models.variants import ModelVariant
from missinghe.preparation.descriptors import Role

_ROLE_LABELS = {
    Role.EFFECT: 'Effects',
    Role.COST: 'Costs',
    Role.MISSING_EFFECT: 'Missing effects',
    Role.MISSING_COST: 'Missing costs',
    Role.STRUCTURAL_EFFECT: 'Structural effects',
    Role.STRUCTURAL_COST: 'Structural costs',
}


@dataclass
class PreparedModel:
    """
    Configured model ready for the inference engine.

    Produced by selection() and hurdle().
    """
    _result: Result[ModelConfig]

    @property
    def config(self) -> ModelConfig:
        return self._result.params

    @property
    def variant(self) -> ModelVariant:
        return self._result.params.variant

    @property
    def tag(self) -> str:
        return self._result.params.variant.tag

    @property
    def sampler(self) -> SamplerSettings:
        return self._result.params.sampler

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def data_summary(self) -> dict[str, Any]:
        """
        Per-arm counts and raw data, keyed by descriptive names.

        Keys: 'effects', 'costs' (per-arm raw vectors), 'N', 'N observed
        effects', 'N observed costs', 'N missing effects', 'N missing costs'
        (per-arm pairs), and 'structural effects' / 'structural costs'
        (per-arm indicators) for hurdle models.
        """
        config = self.config
        arms = config.arms
        out: dict[str, Any] = {
            'effects': tuple(np.array(arm.effects) for arm in arms),
            'costs': tuple(np.array(arm.costs) for arm in arms),
            'N': arms.arm_lengths,
            'N observed effects': arms.n_observed('e'),
            'N observed costs': arms.n_observed('c'),
            'N missing effects': arms.n_missing('e'),
            'N missing costs': arms.n_missing('c'),
        }
        for pair in config.indicators:
            if pair.kind == 'structural':
                label = 'effects' if pair.outcome == 'e' else 'costs'
                out[f'structural {label}'] = tuple(
                    np.array(vector.values) for vector in pair
                )
        return out

    def summary(self) -> str:
        """Plain-text rendering of the resolved model specification."""
        config = self.config
        variant = config.variant
        n1, n2 = config.arms.arm_lengths

        lines = [
            f"{variant.family.value.capitalize()} model: {variant.mechanism.value}",
            "=" * 64,
            f"Variant: {variant.tag}",
            f"  {variant.describe()}",
            "",
            f"Observations: {n1 + n2} (Control {n1}, Intervention {n2})",
        ]
        for outcome, label in (('e', 'Effects'), ('c', 'Costs')):
            miss1, miss2 = config.arms.n_missing(outcome)
            lines.append(
                f"  {label:<8} missing: Control {miss1}, Intervention {miss2}"
            )

        lines.append("")
        lines.append("Distributions:")
        lines.append(f"  e ~ {variant.dist_e.value}")
        lines.append(
            f"  c ~ {variant.dist_c.value}"
            f"{'  (conditional on e)' if variant.correlated else ''}"
        )

        lines.append("")
        lines.append("Linear predictors:")
        for pair in config.designs:
            lines.append(f"  {_ROLE_LABELS[pair.role]:<20} {pair.descriptor}")
            lines.append(f"  {'':<20} columns: {', '.join(pair.columns)}")

        lines.append("")
        lines.append("Mechanisms:")
        lines.extend(_mechanism_lines(config))

        lines.append("")
        lines.append("Priors:")
        for binding in config.priors:
            values = ", ".join(f"{v:g}" for v in binding.values)
            source = 'user' if binding.user_supplied else 'default'
            lines.append(f"  {binding.name:<16} ({values})  [{source}]")

        sampler = config.sampler
        lines.append("")
        lines.append(
            f"Sampler: {sampler.n_chains} chains, {sampler.n_iter} iterations, "
            f"burn-in {sampler.n_burnin}, thin {sampler.n_thin}, "
            f"interval probabilities {sampler.prob[0]:g}-{sampler.prob[1]:g}"
        )

        if self.warnings:
            lines.append("")
            lines.append("Notes:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        return "\n".join(lines)

    def save(self, path: str | Path) -> Path:
        """Write summary() to path and return the path."""
        path = Path(path)
        path.write_text(self.summary() + "\n", encoding='utf-8')
        return path

    def __repr__(self) -> str:
        n1, n2 = self.config.arms.arm_lengths
        return (
            f"PreparedModel(family='{self.variant.family.value}', "
            f"tag='{self.tag}', n=({n1}, {n2}))"
        )


def _mechanism_lines(config: ModelConfig) -> list[str]:
    variant = config.variant
    lines = []
    for outcome, shape in (('e', variant.effect_mechanism), ('c', variant.cost_mechanism)):
        if variant.family is ModelFamily.SELECTION:
            lines.append(f"  {outcome}: missing {shape.description}")
            continue
        if shape is MechanismShape.ABSENT:
            lines.append(f"  {outcome}: no structural values")
            continue
        pair = config.indicator(outcome, 'structural')
        n_structural = sum(vector.n_flagged for vector in pair)
        origin = 'supplied' if pair.overridden else 'derived'
        lines.append(
            f"  {outcome}: structural value {pair.structural_value:g} "
            f"{shape.description} ({n_structural} flagged, {origin})"
        )
    return lines
