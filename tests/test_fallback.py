"""Tests for fallback generators -- seeded determinism, bounds and coherence."""

import random

import pytest

from valueassess.fallback.generators import FallbackGenerator
from valueassess.models.enums import PricingSensitivity, StageId
from valueassess.models.product import BaseProductInfo, ProductInput
from valueassess.models.segment import Segment, StageContext
from valueassess.models.stages import (
    NbaAnalysis,
    NbaValuation,
    STAGE_SCHEMAS,
    ValueDifferentiators,
    WillingnessToPay,
)


@pytest.fixture
def product() -> ProductInput:
    return ProductInput(name="EcoBike 3000", description="electric bike with recycled frame")


def _segment(sensitivity=PricingSensitivity.MEDIUM, name="ROI-Focused Operators") -> Segment:
    return Segment(id="seg-1", name=name, pricing_sensitivity=sensitivity)


def _context(product, segment=None, **outputs) -> StageContext:
    results = {StageId(stage.replace("_", "-")).result_key: output for stage, output in outputs.items()}
    return StageContext(
        base_info=BaseProductInfo.from_product(product),
        segment=segment,
        results=results,
    )


class TestFallbackGenerator:
    def test_segmentation_produces_three_heuristic_segments(self, product):
        output = FallbackGenerator(random.Random(1)).segmentation(product, _context(product))
        assert [s.name for s in output.segments] == [
            "Eco Leaders",
            "ROI-Focused Operators",
            "Cost-Conscious Pragmatists",
        ]
        assert [s.pricing_sensitivity for s in output.segments] == ["low", "medium", "high"]

    def test_seeded_generators_are_reproducible(self, product):
        context = _context(product, _segment())
        first = FallbackGenerator(random.Random(42)).nba_analysis(product, context)
        second = FallbackGenerator(random.Random(42)).nba_analysis(product, context)
        assert first.to_payload() == second.to_payload()

    @pytest.mark.parametrize("sensitivity, factor", [
        (PricingSensitivity.LOW, 1.15),
        (PricingSensitivity.MEDIUM, 1.0),
        (PricingSensitivity.HIGH, 0.85),
    ])
    def test_nba_prices_stay_within_scaled_bounds(self, product, sensitivity, factor):
        context = _context(product, _segment(sensitivity))
        generator = FallbackGenerator(random.Random(7))
        for _ in range(25):
            primary, challenger = generator.nba_analysis(product, context).price_points()
            assert 1400 * factor - 1 <= primary <= 2300 * factor + 1
            assert 1000 * factor * 0.95 - 1 <= challenger <= 1800 * factor * 0.95 + 1

    def test_nba_value_derives_from_upstream_prices(self, product):
        analysis = NbaAnalysis.model_validate({
            "identifiedAlternatives": [{"estimatedPrice": 1800}, {"estimatedPrice": 1200}],
        })
        context = _context(product, _segment(PricingSensitivity.LOW), nba_analysis=analysis)
        output = FallbackGenerator(random.Random(3)).nba_value(product, context)
        assert output.nba_value == 1725
        assert output.confidence_level == "high"

    def test_differentiators_scale_off_nba_value_and_sum_to_total(self, product):
        context = _context(product, _segment(), nba_value=NbaValuation(nba_value=10_000))
        output = FallbackGenerator(random.Random(5)).value_differentiators(product, context)
        tco = output.differentiators[0].value
        assert 2800 <= tco <= 3300
        assert output.total_differentiator_value == output.differentiator_sum
        assert not output.total_disagrees()

    def test_willingness_to_pay_uses_upstream_values(self, product):
        differentiators = ValueDifferentiators.model_validate({
            "differentiators": [{"name": "A", "value": 5000}, {"name": "B", "value": 4000}],
        })
        context = _context(
            product,
            _segment(),
            nba_value=NbaValuation(nba_value=1500),
            value_differentiators=differentiators,
        )
        output = FallbackGenerator(random.Random(9)).willingness_to_pay(product, context)
        assert output.total_willingness_to_pay == 10500
        recommendation = output.price_recommendation
        assert recommendation.recommended_price == 9660
        assert recommendation.floor_price == 8694
        assert recommendation.stretch_price == 11109
        assert recommendation.confidence == "Medium-High"

    def test_low_sensitivity_raises_willingness_and_stretch(self, product):
        context = _context(
            product,
            _segment(PricingSensitivity.LOW),
            nba_value=NbaValuation(nba_value=1000),
            value_differentiators=ValueDifferentiators.model_validate(
                {"differentiators": [{"name": "A", "value": 1000}]}
            ),
        )
        output = FallbackGenerator(random.Random(9)).willingness_to_pay(product, context)
        assert output.total_willingness_to_pay == 2160
        assert output.price_recommendation.recommended_price == 2052
        assert output.price_recommendation.stretch_price == 2503

    def test_communication_references_recommended_price(self, product):
        willingness = WillingnessToPay.model_validate({"priceRecommendation": {"recommendedPrice": 9660}})
        context = _context(product, _segment(), willingness_to_pay=willingness)
        output = FallbackGenerator(random.Random(1)).customer_communication(product, context)
        assert "$9,660" in output.communication_strategy

    @pytest.mark.parametrize("stage", list(StageId))
    def test_output_revalidates_against_stage_schema(self, product, stage):
        """Fallback output survives the same validation as LLM output."""
        output = FallbackGenerator(random.Random(11)).generate(stage, product, _context(product, _segment()))
        assert isinstance(output, STAGE_SCHEMAS[stage])
        revalidated = STAGE_SCHEMAS[stage].model_validate(output.to_payload())
        assert revalidated.to_payload() == output.to_payload()
