"""
Tests for the segment evaluator.

Exercises condition operators, connectors, head segments and the
handling of malformed definitions directly against the service.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from crm_api.exceptions import ValidationError
from crm_api.services.segment_evaluator import SegmentEvaluator, like_pattern, parse_definition


def condition(field, operator, value=None, type="string"):
    return {"field": field, "operator": operator, "value": value, "type": type}


def definition(*conditions, connector="all", content_type="customer"):
    return {"contentType": content_type, "connector": connector, "conditions": list(conditions)}


class TestConditionOperators:
    """Each operator against a small fixed customer set."""

    @pytest.mark.asyncio
    async def test_contains_is_case_insensitive(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory(first_name="Annabel")
        await customer_factory(first_name="Joanna")
        await customer_factory(first_name="Bob")

        evaluator = SegmentEvaluator(test_db)
        count = await evaluator.count_definition(definition(condition("firstName", "c", "ANN")))

        assert count == 2

    @pytest.mark.asyncio
    async def test_does_not_contain_includes_missing_values(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory(position="Sales Manager")
        await customer_factory(position="Engineer")
        await customer_factory(position=None)

        evaluator = SegmentEvaluator(test_db)
        count = await evaluator.count_definition(definition(condition("position", "dnc", "sales")))

        assert count == 2

    @pytest.mark.asyncio
    async def test_equals_and_not_equals(self, test_db: AsyncSession, customer_factory):
        await customer_factory(lead_status="open")
        await customer_factory(lead_status="new")
        await customer_factory(lead_status="new")

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(
            definition(condition("leadStatus", "e", "OPEN"))
        ) == 1
        assert await evaluator.count_definition(
            definition(condition("leadStatus", "dne", "open"))
        ) == 2

    @pytest.mark.asyncio
    async def test_boolean_operators(self, test_db: AsyncSession, customer_factory):
        await customer_factory(do_not_disturb=True)
        await customer_factory(do_not_disturb=False)
        await customer_factory(do_not_disturb=False)

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(
            definition(condition("doNotDisturb", "it", type="boolean"))
        ) == 1
        assert await evaluator.count_definition(
            definition(condition("doNotDisturb", "if", type="boolean"))
        ) == 2

    @pytest.mark.asyncio
    async def test_is_set_and_is_not_set(self, test_db: AsyncSession, customer_factory):
        await customer_factory(department="Finance")
        await customer_factory(department="")
        await customer_factory(department=None)

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(
            definition(condition("department", "is"))
        ) == 1
        assert await evaluator.count_definition(
            definition(condition("department", "ins"))
        ) == 2

    @pytest.mark.asyncio
    async def test_date_comparisons(self, test_db: AsyncSession, customer_factory):
        await customer_factory()
        await customer_factory()

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(
            definition(condition("createdAt", "igt", "2000-01-01T00:00:00", type="date"))
        ) == 2
        assert await evaluator.count_definition(
            definition(condition("createdAt", "ilt", "2000-01-01T00:00:00", type="date"))
        ) == 0


class TestConnectors:

    @pytest.mark.asyncio
    async def test_all_connector_requires_every_condition(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory(first_name="Annabel", last_name="Smith")
        await customer_factory(first_name="Annabel", last_name="Jones")

        evaluator = SegmentEvaluator(test_db)
        count = await evaluator.count_definition(
            definition(
                condition("firstName", "c", "annabel"),
                condition("lastName", "c", "smith"),
            )
        )

        assert count == 1

    @pytest.mark.asyncio
    async def test_any_connector_requires_one_condition(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory(first_name="Annabel", last_name="Smith")
        await customer_factory(first_name="Bob", last_name="Jones")
        await customer_factory(first_name="Carl", last_name="White")

        evaluator = SegmentEvaluator(test_db)
        count = await evaluator.count_definition(
            definition(
                condition("firstName", "c", "annabel"),
                condition("lastName", "c", "jones"),
                connector="any",
            )
        )

        assert count == 2

    @pytest.mark.asyncio
    async def test_no_conditions_matches_every_customer(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory()
        await customer_factory()

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(definition()) == 2


class TestStoredSegments:

    @pytest.mark.asyncio
    async def test_evaluate_segment_returns_matching_ids(
        self, test_db: AsyncSession, customer_factory, segment_factory
    ):
        match = await customer_factory(first_name="Annabel")
        await customer_factory(first_name="Bob")
        segment = await segment_factory(conditions=[condition("firstName", "c", "annabel")])

        ids = await SegmentEvaluator(test_db).evaluate_segment(segment.id)

        assert ids == [match.id]

    @pytest.mark.asyncio
    async def test_unknown_segment_matches_nothing(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory()

        assert await SegmentEvaluator(test_db).evaluate_segment("missing-segment") == []

    @pytest.mark.asyncio
    async def test_company_segment_matches_no_customers(
        self, test_db: AsyncSession, customer_factory, segment_factory
    ):
        await customer_factory(first_name="Annabel")
        segment = await segment_factory(
            content_type="company", conditions=[condition("firstName", "c", "annabel")]
        )

        assert await SegmentEvaluator(test_db).evaluate_segment(segment.id) == []

    @pytest.mark.asyncio
    async def test_head_segment_conditions_are_applied(
        self, test_db: AsyncSession, customer_factory, segment_factory
    ):
        match = await customer_factory(first_name="Annabel", lead_status="open")
        await customer_factory(first_name="Annabel", lead_status="new")
        await customer_factory(first_name="Bob", lead_status="open")

        head = await segment_factory(conditions=[condition("leadStatus", "e", "open")])
        child = await segment_factory(
            sub_of=head.id, conditions=[condition("firstName", "c", "annabel")]
        )

        ids = await SegmentEvaluator(test_db).evaluate_segment(child.id)

        assert ids == [match.id]

    @pytest.mark.asyncio
    async def test_head_segment_cycle_terminates(
        self, test_db: AsyncSession, customer_factory, segment_factory
    ):
        match = await customer_factory(first_name="Annabel", lead_status="open")
        await customer_factory(first_name="Bob", lead_status="open")

        first = await segment_factory(conditions=[condition("leadStatus", "e", "open")])
        second = await segment_factory(
            sub_of=first.id, conditions=[condition("firstName", "c", "annabel")]
        )
        first.sub_of = second.id
        await test_db.commit()

        ids = await SegmentEvaluator(test_db).evaluate_segment(first.id)

        assert ids == [match.id]

    @pytest.mark.asyncio
    async def test_head_segment_for_companies_matches_nothing(
        self, test_db: AsyncSession, customer_factory, segment_factory
    ):
        await customer_factory(first_name="Annabel")
        head = await segment_factory(
            content_type="company", conditions=[condition("firstName", "c", "annabel")]
        )
        child = await segment_factory(
            sub_of=head.id, conditions=[condition("firstName", "c", "annabel")]
        )

        assert await SegmentEvaluator(test_db).evaluate_segment(child.id) == []


class TestFieldTypes:
    """Conditions must agree with the value type of the field they target."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rule",
        [
            condition("createdAt", "igt", "5", type="number"),
            condition("createdAt", "e", "yesterday"),
            condition("doNotDisturb", "e", "yes"),
            condition("firstName", "e", "true", type="boolean"),
        ],
    )
    async def test_declared_type_must_match_field(self, test_db: AsyncSession, rule):
        with pytest.raises(ValidationError) as exc_info:
            SegmentEvaluator(test_db).definition_filter(definition(rule))

        assert rule["field"] in exc_info.value.detail

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rule",
        [
            condition("firstName", "it", type=None),
            condition("createdAt", "if", type=None),
            condition("doNotDisturb", "c", "t", type=None),
            condition("createdAt", "dnc", "2024", type=None),
            condition("firstName", "igt", "a", type=None),
            condition("doNotDisturb", "ilt", "true", type=None),
        ],
    )
    async def test_operator_must_suit_field(self, test_db: AsyncSession, rule):
        with pytest.raises(ValidationError) as exc_info:
            SegmentEvaluator(test_db).definition_filter(definition(rule))

        assert "cannot be applied" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_uncoercible_value_for_inferred_type(self, test_db: AsyncSession):
        with pytest.raises(ValidationError) as exc_info:
            SegmentEvaluator(test_db).definition_filter(
                definition(condition("doNotDisturb", "e", "yes", type=None))
            )

        assert "not a valid boolean" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_valueless_operator_rejects_value(self, test_db: AsyncSession):
        with pytest.raises(ValidationError) as exc_info:
            SegmentEvaluator(test_db).definition_filter(
                definition(condition("department", "is", "Finance"))
            )

        assert "takes no value" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_type_defaults_to_field_type(
        self, test_db: AsyncSession, customer_factory
    ):
        await customer_factory(do_not_disturb=True)
        await customer_factory(do_not_disturb=False)

        evaluator = SegmentEvaluator(test_db)

        assert await evaluator.count_definition(
            definition(condition("doNotDisturb", "it", type=None))
        ) == 1
        assert await evaluator.count_definition(
            definition(condition("doNotDisturb", "e", "false", type=None))
        ) == 1
        assert await evaluator.count_definition(
            definition(condition("createdAt", "igt", "2000-01-01", type=None))
        ) == 2


class TestMalformedDefinitions:

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, test_db: AsyncSession):
        evaluator = SegmentEvaluator(test_db)

        with pytest.raises(ValidationError) as exc_info:
            evaluator.definition_filter(definition(condition("shoeSize", "e", "42")))

        assert "shoeSize" in exc_info.value.detail

    def test_unknown_operator_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_definition(definition(condition("firstName", "regex", "a")))

    @pytest.mark.asyncio
    async def test_missing_value_is_rejected(self, test_db: AsyncSession):
        evaluator = SegmentEvaluator(test_db)

        with pytest.raises(ValidationError):
            evaluator.definition_filter(definition(condition("firstName", "c", "")))

    @pytest.mark.asyncio
    async def test_uncoercible_date_is_rejected(self, test_db: AsyncSession):
        evaluator = SegmentEvaluator(test_db)

        with pytest.raises(ValidationError):
            evaluator.definition_filter(
                definition(condition("createdAt", "igt", "yesterday", type="date"))
            )

    def test_definition_must_be_object(self):
        with pytest.raises(ValidationError):
            parse_definition(["firstName"])

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("50%_off") == "%50\\%\\_off%"
