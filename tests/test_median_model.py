from casevalue.data.base import QueryCase
from casevalue.models.median_model import MedianModel, closest_settlement

from conftest import make_case, scored

BELOW = [50_000, 55_000, 60_000, 65_000, 70_000, 75_000, 80_000, 85_000, 90_000, 95_000, 100_000, 110_000]
ABOVE = [125_000, 130_000, 135_000, 140_000, 145_000, 150_000, 160_000, 165_000, 170_000, 180_000, 185_000, 190_000]


def _cases(amounts, surgery=None, policy_limit=None, start=1):
    return [
        make_case(start + i, f"${a:,}", surgery=surgery, policy_limit=policy_limit)
        for i, a in enumerate(amounts)
    ]


def test_no_surgery_discount_picks_closest_real_settlement():
    amounts = BELOW + [120_000] + ABOVE
    cases = _cases(amounts, policy_limit="$300,000")
    cases[:4] = _cases(amounts[:4], surgery="Lumbar Fusion", policy_limit="$300,000")
    query = QueryCase(surgery="None", policy_limit="$100,000")

    result = MedianModel().aggregate(query, scored(cases))

    # median 120,000 * 0.80 = 96,000 -> nearest real settlement 95,000
    assert result.amount == 95_000
    assert result.source_case_ids == [10]
    assert (result.range_low, result.range_high) == (50_000, 190_000)
    assert result.comparables_used == 25
    assert "without surgery" in result.rationale


def test_proposal_is_always_a_comparable_settlement():
    cases = _cases([101_234, 87_650, 143_999, 99_001])
    result = MedianModel().aggregate(QueryCase(surgery="Lumbar Fusion"), scored(cases))
    assert result.amount in {101_234, 87_650, 143_999, 99_001}
    assert result.range_low <= result.amount <= result.range_high


def test_equidistant_settlements_resolve_to_the_smaller():
    cases = _cases([200_000, 100_000])
    query = QueryCase(surgery="Lumbar Fusion", policy_limit=None)
    result = MedianModel().aggregate(query, scored(cases))
    assert result.amount == 100_000
    assert result.source_case_ids == [2]


def test_policy_limit_above_all_comparables_escalates():
    cases = _cases([100_000, 120_000, 140_000], policy_limit="$300,000")
    query = QueryCase(venue="Los Angeles", surgery="Lumbar Fusion", policy_limit="$500,000")

    result = MedianModel().aggregate(query, scored(cases))

    # 120,000 * 1.15 = 138,000 -> 140,000
    assert result.amount == 140_000
    assert result.factors == ["policy limits above every comparable case"]
    assert result.rationale == (
        "Based on analysis of 3 comparable cases in Los Angeles with Lumbar Fusion, "
        "considering policy limits of $500,000. "
        "Median adjusted for policy limits above every comparable case."
    )


def test_policy_limit_rule_sees_cases_outside_the_top_slice():
    cases = _cases([100_000, 120_000, 140_000], policy_limit="$300,000")
    cases.append(make_case(4, "$900,000", policy_limit="$1,000,000"))
    query = QueryCase(surgery="Lumbar Fusion", policy_limit="$500,000")

    result = MedianModel(limit=3).aggregate(query, scored(cases))

    assert result.amount == 120_000
    assert result.factors == []
    # the fourth case does not feed the range
    assert result.range_high == 140_000


def test_surgery_rule_sees_cases_outside_the_top_slice():
    cases = _cases([100_000, 120_000, 140_000])
    cases += _cases([500_000, 600_000, 700_000], surgery="Knee Arthroscopy", start=4)
    query = QueryCase(surgery=None)

    result = MedianModel(limit=3).aggregate(query, scored(cases))

    # 120,000 * 0.80 = 96,000 -> 100,000
    assert result.amount == 100_000
    assert result.factors == ["no surgery where comparable cases had surgery"]


def test_discount_needs_three_surgical_comparables():
    cases = _cases([100_000, 120_000, 140_000])
    cases[:2] = _cases([100_000, 120_000], surgery="Lumbar Fusion")
    result = MedianModel().aggregate(QueryCase(surgery="None"), scored(cases))
    assert result.amount == 120_000


def test_both_adjustments_compound():
    cases = _cases([100_000, 120_000, 140_000], surgery="Lumbar Fusion", policy_limit="$100,000")
    query = QueryCase(surgery="none", policy_limit="$250,000")
    result = MedianModel().aggregate(query, scored(cases))
    # 120,000 * 1.15 * 0.80 = 110,400; 120,000 is 9,600 away, 100,000 is 10,400
    assert result.amount == 120_000
    assert len(result.factors) == 2


def test_unparseable_settlements_are_skipped():
    cases = [make_case(1, "pending"), make_case(2, "$80,000"), make_case(3, "$0")]
    result = MedianModel().aggregate(QueryCase(surgery="Lumbar Fusion"), scored(cases))
    assert result.amount == 80_000
    assert result.source_case_ids == [2]
    assert result.comparables_used == 1


def test_no_usable_settlements_is_degenerate():
    cases = [make_case(1, "pending"), make_case(2, None)]
    result = MedianModel().aggregate(QueryCase(), scored(cases))
    assert result.degenerate
    assert result.amount == 0
    assert result.source_case_ids == []
    assert "No comparable cases" in result.rationale


def test_empty_comparables_is_degenerate():
    result = MedianModel().aggregate(QueryCase(), [])
    assert result.degenerate


def test_closest_settlement_tie_break():
    assert closest_settlement([(200.0, 1), (100.0, 2)], 150.0) == (100.0, 2)
    assert closest_settlement([(100.0, 2), (200.0, 1)], 150.0) == (100.0, 2)
    assert closest_settlement([(100.0, 1), (300.0, 2)], 290.0) == (300.0, 2)
