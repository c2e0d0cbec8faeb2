"""
Tests for api/models.py — request decoding and response encoding

Checks the short wire keys, name normalization, dropped client ids,
amount quantization and timestamp normalization.
"""
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.models import (
    Bucket,
    BucketIn,
    BucketItem,
    BucketItemBatchIn,
    BucketItemIn,
    BucketItemOut,
    BucketOut,
    BucketSummary,
    BucketSummaryOut,
    CategoryIn,
    TemplateItemIn,
    to_amount,
    to_timestamp,
)


class TestHelpers:
    def test_to_amount_rounds_half_up(self):
        assert to_amount("2.345") == Decimal("2.35")
        assert to_amount(3) == Decimal("3.00")

    def test_to_timestamp_drops_microseconds(self):
        assert to_timestamp(datetime(2024, 1, 1, 8, 0, 0, 999)) == datetime(2024, 1, 1, 8, 0, 0)


class TestRequestModels:
    def test_category_name_normalized(self):
        assert CategoryIn.model_validate({"name": " House "}).name == "house"

    def test_client_id_dropped(self):
        record = CategoryIn.model_validate({"id": 9, "name": "house"}).to_record()
        assert record.id == 0

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CategoryIn.model_validate({"name": ""})

    def test_bucket_short_keys(self):
        record = BucketIn.model_validate(
            {"categoryID": 2, "name": "Gas", "desc": "fuel", "liq": False}
        ).to_record()
        assert record == Bucket(category_id=2, name="gas", description="fuel", is_liquid=False)

    def test_bucket_item_short_keys(self):
        record = BucketItemIn.model_validate(
            {"bid": 1, "name": "Pay", "trans": "2024-03-01T09:15:00", "d": 10, "w": "1.5"}
        ).to_record()
        assert record.bucket_id == 1
        assert record.transaction == datetime(2024, 3, 1, 9, 15)
        assert record.deposit == Decimal("10.00")
        assert record.withdraw == Decimal("1.50")

    def test_bucket_item_amounts_default_to_zero(self):
        item = BucketItemIn.model_validate({"bid": 1, "name": "x", "trans": "2024-03-01T00:00:00"})
        assert item.deposit == Decimal("0.00")
        assert item.withdraw == Decimal("0.00")

    def test_bucket_item_requires_transaction(self):
        with pytest.raises(ValidationError):
            BucketItemIn.model_validate({"bid": 1, "name": "x"})

    def test_batch_requires_items(self):
        with pytest.raises(ValidationError):
            BucketItemBatchIn.model_validate({"items": []})

    def test_template_item_short_keys(self):
        record = TemplateItemIn.model_validate({"tid": 4, "bid": 5, "name": "Gas"}).to_record()
        assert (record.template_id, record.bucket_id, record.name) == (4, 5, "gas")


class TestResponseModels:
    def test_bucket_out_keys(self):
        out = BucketOut.from_record(Bucket(category_id=1, name="gas", id=3))
        assert out.model_dump(by_alias=True) == {
            "id": 3, "categoryID": 1, "name": "gas", "desc": "", "liq": True,
        }

    def test_bucket_item_out_amounts_are_numbers(self):
        record = BucketItem(
            bucket_id=1, name="pay", transaction=datetime(2024, 1, 5),
            deposit=Decimal("3.99"), id=7,
        )
        data = BucketItemOut.from_record(record).model_dump(mode="json", by_alias=True)
        assert data == {
            "id": 7, "bid": 1, "name": "pay", "trans": "2024-01-05T00:00:00", "d": 3.99, "w": 0.0,
        }

    def test_summary_keys(self):
        out = BucketSummaryOut.from_record(
            BucketSummary(bucket_id=1, bucket_name="gas", category_name="house",
                          total=Decimal("3.99"), is_liquid=True)
        )
        assert out.model_dump(mode="json", by_alias=True) == {
            "bid": 1, "bn": "gas", "cn": "house", "t": 3.99, "l": True,
        }
