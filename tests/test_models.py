"""Tests for product input, segment state and stage output models."""

import pytest
from pydantic import ValidationError

from valueassess.errors import ShapeError, TransportError
from valueassess.models.enums import PricingSensitivity, StageId
from valueassess.models.product import (
    MAX_DOCUMENT_CHARS,
    TRUNCATION_MARKER,
    BaseProductInfo,
    DocumentText,
    ProductInput,
)
from valueassess.models.segment import Segment, SegmentState
from valueassess.models.stages import NbaValuation, WillingnessToPay


class TestProductInput:
    def test_text_fields_are_stripped(self):
        product = ProductInput(name="  EcoBike ", description=" bike ", known_alternatives=None)
        assert product.name == "EcoBike"
        assert product.description == "bike"
        assert product.known_alternatives == ""

    def test_is_immutable(self):
        product = ProductInput(name="EcoBike", description="bike")
        with pytest.raises(ValidationError):
            product.name = "Other"

    def test_document_text_is_capped_with_marker(self):
        doc = DocumentText(filename="long.txt", text="a" * (MAX_DOCUMENT_CHARS + 500))
        assert doc.text.endswith(TRUNCATION_MARKER)
        assert len(doc.text) == MAX_DOCUMENT_CHARS + len(TRUNCATION_MARKER)


class TestBaseProductInfo:
    def test_defaults_for_missing_optional_fields(self):
        info = BaseProductInfo.from_product(ProductInput(name="EcoBike", description="bike"))
        assert info.alternatives == "None specified"
        assert info.additional_info == "None provided"
        assert info.docs == "None"

    def test_document_excerpts_are_joined(self):
        product = ProductInput(
            name="EcoBike",
            description="bike",
            documents=[
                DocumentText(filename="a.txt", text="x" * 800),
                DocumentText(filename="b.txt", text="short"),
            ],
        )
        info = BaseProductInfo.from_product(product, excerpt_chars=500)
        assert info.docs == f"a.txt: {'x' * 500}... | b.txt: short..."


class TestPricingSensitivity:
    @pytest.mark.parametrize("raw, expected", [
        ("low", PricingSensitivity.LOW),
        ("HIGH", PricingSensitivity.HIGH),
        ("Low to moderate", PricingSensitivity.LOW),
        ("Highly price sensitive, low budget", PricingSensitivity.HIGH),
        ("", PricingSensitivity.MEDIUM),
        (None, PricingSensitivity.MEDIUM),
    ])
    def test_tolerant_parse(self, raw, expected):
        assert PricingSensitivity.parse(raw) is expected


class TestSegmentState:
    def test_results_are_write_once(self):
        state = SegmentState(id="s-1", index=0, profile=Segment(id="s-1", name="S"))
        state.record(StageId.NBA_VALUE, NbaValuation(nba_value=10))
        with pytest.raises(ValueError):
            state.record(StageId.NBA_VALUE, NbaValuation(nba_value=20))
        assert state.get(StageId.NBA_VALUE).nba_value == 10

    def test_snapshot_is_independent(self):
        state = SegmentState(id="s-1", index=0, profile=Segment(id="s-1", name="S"))
        snapshot = state.snapshot()
        state.record(StageId.NBA_VALUE, NbaValuation(nba_value=10))
        assert snapshot.results == {}


class TestStageModels:
    def test_bare_price_recommendation_is_wrapped(self):
        output = WillingnessToPay.model_validate({"priceRecommendation": "$4,200"})
        assert output.price_recommendation.recommended_price == 4200

    def test_payload_uses_camel_case_and_drops_none(self):
        payload = WillingnessToPay.model_validate({"totalWillingnessToPay": 10}).to_payload()
        assert payload["totalWillingnessToPay"] == 10
        assert "priceRecommendation" not in payload


class TestErrors:
    def test_tagged_error_names_stage_and_segment(self):
        error = ShapeError("missing nbaValue").tag("nba-value", "fleet-1")
        assert str(error) == "[nba-value/fleet-1] missing nbaValue"

    def test_transport_error_carries_status(self):
        error = TransportError("rate limited", status_code=429)
        assert error.status_code == 429
        assert error.stage_id is None
