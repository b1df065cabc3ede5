"""Tests for the eight triage checks."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from billclarity.rules import CandidateFlag, CleanItem, FlagType, TriageNote
from billclarity.rules.categories.duplicate_rules import duplicate_charge_rule
from billclarity.rules.categories.math_rules import MATH_RECONCILED_NOTE, math_error_rule
from billclarity.rules.categories.nsa_rules import (
    nsa_air_ambulance_rule,
    nsa_ancillary_rule,
    nsa_emergency_rule,
)
from billclarity.rules.categories.oop_rules import OOP_SAVINGS_TEXT, oop_proximity_rule
from billclarity.rules.categories.pos_rules import wrong_pos_rule
from billclarity.rules.categories.zero_payment_rules import zero_payment_rule


def _flags(findings):
    return [f for f in findings if isinstance(f, CandidateFlag)]


# ============================================================================
# ZERO PAYMENT
# ============================================================================
class TestZeroPaymentCheck:
    """Tests for zero-payment line classification."""

    def test_prior_auth_denial_is_coverage_denial(self, make_bill, make_line, make_context):
        """CO-197 on a zero-payment line raises an appealable coverage denial."""
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        plan_paid="0.00",
                        patient_responsibility="300.00",
                        adjustment_reason_code="CO-197",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        flags = _flags(zero_payment_rule(context))

        assert len(flags) == 1
        flag = flags[0]
        assert flag.flag_type == FlagType.COVERAGE_DENIAL
        assert flag.line_references == (1,)
        assert flag.potential_savings == "up to $300.00"
        assert flag.metadata["appeal_deadline"] == date(2025, 9, 6)

    def test_prior_auth_in_description(self, make_bill, make_line, make_context):
        """The prior-auth marker may appear in the adjustment description."""
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        adjustment_reason_code="CO-15",
                        adjustment_reason_description="Prior auth number missing",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        flags = _flags(zero_payment_rule(context))
        assert [f.flag_type for f in flags] == [FlagType.COVERAGE_DENIAL]

    def test_missing_date_gives_no_deadline(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        date_of_service=None,
                        adjustment_reason_code="CO-197",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        flags = _flags(zero_payment_rule(context))
        assert flags[0].metadata["appeal_deadline"] is None

    def test_deductible_is_clean(self, make_bill, make_line, make_context):
        """Cost sharing explains the zero payment."""
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        adjustment_reason_code="PR-1",
                        adjustment_reason_description="Deductible amount",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        findings = zero_payment_rule(context)

        assert len(findings) == 1
        assert isinstance(findings[0], CleanItem)
        assert findings[0].line_number == 1

    def test_not_covered_is_note(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        2,
                        adjustment_reason_code="CO-96",
                        adjustment_reason_description="Non-covered charge(s)",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        findings = zero_payment_rule(context)

        assert len(findings) == 1
        assert isinstance(findings[0], TriageNote)
        assert findings[0].line_number == 2
        assert "not covered" in findings[0].text

    def test_unexplained_zero_payment_is_processing_error(
        self, make_bill, make_line, make_context
    ):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        adjustment_reason_code="CO-45",
                        adjustment_reason_description="Charge exceeds fee schedule",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        flags = _flags(zero_payment_rule(context))
        assert [f.flag_type for f in flags] == [FlagType.POSSIBLE_PROCESSING_ERROR]

    def test_paid_line_is_ignored(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1, adjustment_reason_code="CO-197")]))
        assert zero_payment_rule(context) == []


# ============================================================================
# MATH
# ============================================================================
class TestMathCheck:
    """Tests for member responsibility reconciliation."""

    def _bill(self, make_bill, make_line, stated, *amounts):
        lines = [
            make_line(n, cpt_code=f"9921{n}", patient_responsibility=amount)
            for n, amount in enumerate(amounts, start=1)
        ]
        return make_bill(lines, summary={"member_responsibility": stated})

    def test_difference_of_exactly_one_dollar_is_tolerated(
        self, make_bill, make_line, make_context
    ):
        """$100.00 stated vs $99.00 in lines is within tolerance."""
        context = make_context(self._bill(make_bill, make_line, "100.00", "60.00", "39.00"))
        findings = math_error_rule(context)

        assert _flags(findings) == []
        assert findings == [TriageNote(text=MATH_RECONCILED_NOTE)]

    def test_difference_over_one_dollar_is_flagged(self, make_bill, make_line, make_context):
        """$100.00 stated vs $98.99 in lines raises a math error."""
        context = make_context(self._bill(make_bill, make_line, "100.00", "60.00", "38.99"))
        flags = _flags(math_error_rule(context))

        assert len(flags) == 1
        assert flags[0].flag_type == FlagType.MATH_ERROR
        assert flags[0].line_references == (1, 2)
        assert flags[0].potential_savings == "up to $1.01"
        assert flags[0].metadata["difference"] == Decimal("1.01")

    def test_undercharge_is_flagged(self, make_bill, make_line, make_context):
        context = make_context(self._bill(make_bill, make_line, "50.00", "60.00", "40.00"))
        flags = _flags(math_error_rule(context))
        assert flags[0].potential_savings == "up to $50.00"

    def test_missing_line_amount_skips_with_note(self, make_bill, make_line, make_context):
        context = make_context(self._bill(make_bill, make_line, "100.00", "60.00", None))
        findings = math_error_rule(context)

        assert len(findings) == 1
        assert isinstance(findings[0], TriageNote)
        assert "line(s) 2" in findings[0].text

    def test_missing_member_responsibility(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1)]))
        assert math_error_rule(context) == []


# ============================================================================
# OOP PROXIMITY
# ============================================================================
class TestOopCheck:
    """Tests for the out-of-pocket maximum check."""

    def test_proximity_template(self, make_bill, make_line, make_context):
        """$5,840 of $6,000 accumulated raises one informational proximity flag."""
        context = make_context(
            make_bill(
                [make_line(1), make_line(2, cpt_code="36415")],
                summary={"oop_max": "6000.00", "oop_accumulated": "5840.00"},
            )
        )
        flags = _flags(oop_proximity_rule(context))

        assert len(flags) == 1
        flag = flags[0]
        assert flag.flag_type == FlagType.OOP_PROXIMITY
        assert flag.potential_savings == OOP_SAVINGS_TEXT
        assert flag.description == (
            "You're $160 away from your $6,000 out-of-pocket maximum — "
            "future care may be fully covered."
        )
        assert flag.line_references == (1, 2)

    def test_violation_supersedes_proximity(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [make_line(1, patient_responsibility="50.00")],
                summary={
                    "oop_max": "6000.00",
                    "oop_accumulated": "6000.00",
                    "member_responsibility": "50.00",
                },
            )
        )
        flags = _flags(oop_proximity_rule(context))

        assert [f.flag_type for f in flags] == [FlagType.OOP_MAX_VIOLATION]
        assert flags[0].potential_savings == OOP_SAVINGS_TEXT

    def test_max_reached_with_nothing_owed_is_proximity(
        self, make_bill, make_line, make_context
    ):
        context = make_context(
            make_bill(
                [make_line(1, patient_responsibility="0.00")],
                summary={
                    "oop_max": "6000.00",
                    "oop_accumulated": "6000.00",
                    "member_responsibility": "0.00",
                },
            )
        )
        flags = _flags(oop_proximity_rule(context))

        assert [f.flag_type for f in flags] == [FlagType.OOP_PROXIMITY]
        assert flags[0].description.startswith("You're $0 away")

    def test_below_ninety_percent(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [make_line(1)],
                summary={"oop_max": "6000.00", "oop_accumulated": "5399.99"},
            )
        )
        assert oop_proximity_rule(context) == []

    def test_missing_values(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1)], summary={"oop_max": "6000.00"}))
        assert oop_proximity_rule(context) == []


# ============================================================================
# DUPLICATES
# ============================================================================
class TestDuplicateCheck:
    """Tests for duplicate charge detection."""

    def test_same_service_twice(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1), make_line(2)]))
        flags = _flags(duplicate_charge_rule(context))

        assert len(flags) == 1
        assert flags[0].flag_type == FlagType.DUPLICATE_CHARGE
        assert flags[0].line_references == (2,)
        assert flags[0].metadata["duplicate_of"] == 1
        assert flags[0].potential_savings == "up to $30.00"

    def test_corrected_claim_is_exempt(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill([make_line(1), make_line(2, adjustment_reason_code="corrected")])
        )
        assert duplicate_charge_rule(context) == []

    def test_correction_is_never_the_original(self, make_bill, make_line, make_context):
        """A later repeat pairs with the earliest uncorrected line."""
        context = make_context(
            make_bill(
                [
                    make_line(1, adjustment_reason_code="MA130"),
                    make_line(2),
                    make_line(3),
                ]
            )
        )
        flags = _flags(duplicate_charge_rule(context))

        assert len(flags) == 1
        assert flags[0].line_references == (3,)
        assert flags[0].metadata["duplicate_of"] == 2

    def test_different_modifiers_are_distinct(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill([make_line(1), make_line(2, cpt_modifiers=["25"])])
        )
        assert duplicate_charge_rule(context) == []

    def test_different_providers_are_distinct(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill([make_line(1), make_line(2, billing_provider="Lakeside Clinic")])
        )
        assert duplicate_charge_rule(context) == []

    def test_unknown_provider_never_matches(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [make_line(1, billing_provider=None), make_line(2, billing_provider=None)]
            )
        )
        assert duplicate_charge_rule(context) == []


# ============================================================================
# NO SURPRISES ACT
# ============================================================================
class TestNsaEmergencyCheck:
    """Tests for out-of-network emergency care."""

    def _er_line(self, make_line, line_number, **overrides):
        values = {
            "cpt_code": "99285",
            "description": "Emergency department visit, high severity",
            "place_of_service_code": "23",
            "billing_provider": "Metro ER Physicians",
            "billing_provider_specialty": "Emergency Medicine",
            "in_network": False,
            "patient_responsibility": "850.00",
        }
        values.update(overrides)
        return make_line(line_number, **values)

    def test_out_of_network_er_physician(self, make_bill, make_line, make_context):
        context = make_context(make_bill([self._er_line(make_line, 1)]))
        flags = _flags(nsa_emergency_rule(context))

        assert len(flags) == 1
        assert flags[0].flag_type == FlagType.NSA_EMERGENCY_VIOLATION
        assert flags[0].potential_savings == "up to $850.00"

    def test_unknown_network_status(self, make_bill, make_line, make_context):
        context = make_context(make_bill([self._er_line(make_line, 1, in_network=None)]))
        assert nsa_emergency_rule(context) == []

    def test_ancillary_specialty_at_er_is_excluded(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    self._er_line(
                        make_line,
                        1,
                        billing_provider="Summit Radiology Partners",
                        billing_provider_specialty="Radiology",
                    )
                ]
            )
        )
        assert nsa_emergency_rule(context) == []

    def test_one_flag_per_provider(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    self._er_line(make_line, 1),
                    self._er_line(make_line, 2, cpt_code="99291"),
                    self._er_line(make_line, 3, billing_provider="Northside Emergency Group"),
                ]
            )
        )
        flags = _flags(nsa_emergency_rule(context))

        assert sorted(f.line_references for f in flags) == [(1, 2), (3,)]


class TestNsaAncillaryCheck:
    """Tests for out-of-network ancillary providers at an in-network facility."""

    def _anchor(self, make_line):
        return make_line(
            1,
            cpt_code="0360",
            description="Outpatient surgery facility fee",
            place_of_service_code="22",
            billing_provider="General Hospital",
            billing_provider_specialty="Hospital Facility",
            in_network=True,
        )

    def _ancillary(self, make_line, line_number, provider, specialty, description):
        return make_line(
            line_number,
            cpt_code=f"0{line_number}000",
            description=description,
            place_of_service_code="22",
            billing_provider=provider,
            billing_provider_specialty=specialty,
            in_network=False,
            patient_responsibility="100.00",
        )

    def test_three_providers_three_flags(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    self._anchor(make_line),
                    self._ancillary(
                        make_line, 2, "Valley Anesthesia Associates", "Anesthesiology",
                        "Anesthesia for knee arthroscopy",
                    ),
                    self._ancillary(
                        make_line, 3, "Precision Pathology Group", "Pathology",
                        "Surgical pathology exam",
                    ),
                    self._ancillary(
                        make_line, 4, "Summit Radiology Partners", "Diagnostic Radiology",
                        "Knee x-ray interpretation",
                    ),
                ]
            )
        )
        flags = _flags(nsa_ancillary_rule(context))

        assert len(flags) == 3
        assert {f.line_references for f in flags} == {(2,), (3,), (4,)}
        assert {f.metadata["specialty_group"] for f in flags} == {
            "anesthesia",
            "pathology",
            "radiology",
        }

    def test_no_anchor_no_flag(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    self._ancillary(
                        make_line, 2, "Valley Anesthesia Associates", "Anesthesiology",
                        "Anesthesia for knee arthroscopy",
                    )
                ]
            )
        )
        assert nsa_ancillary_rule(context) == []

    def test_provider_lines_are_grouped(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    self._anchor(make_line),
                    self._ancillary(
                        make_line, 2, "QuickLab", "Laboratory", "Comprehensive metabolic panel"
                    ),
                    self._ancillary(make_line, 3, "QuickLab", "Laboratory", "Lipid panel"),
                ]
            )
        )
        flags = _flags(nsa_ancillary_rule(context))

        assert len(flags) == 1
        assert flags[0].line_references == (2, 3)
        assert flags[0].potential_savings == "up to $200.00"


class TestNsaAirAmbulanceCheck:
    """Tests for out-of-network air ambulance transport."""

    def test_air_ambulance_out_of_network(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        cpt_code="A0431",
                        description="Rotary wing air transport",
                        billing_provider="LifeFlight Air",
                        billing_provider_specialty="Ambulance",
                        in_network=False,
                        patient_responsibility="12000.00",
                    )
                ]
            )
        )
        flags = _flags(nsa_air_ambulance_rule(context))

        assert len(flags) == 1
        assert flags[0].flag_type == FlagType.NSA_AIR_AMBULANCE
        assert flags[0].potential_savings == "up to $12,000.00"

    def test_ground_ambulance_never_matches(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill([make_line(1, cpt_code="A0429", in_network=False)])
        )
        assert nsa_air_ambulance_rule(context) == []

    def test_in_network_air_ambulance(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1, cpt_code="A0430", in_network=True)]))
        assert nsa_air_ambulance_rule(context) == []


# ============================================================================
# PLACE OF SERVICE
# ============================================================================
class TestWrongPosCheck:
    """Tests for office visits billed at a hospital place of service."""

    def test_office_visit_at_outpatient_hospital(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1, place_of_service_code="22")]))
        flags = _flags(wrong_pos_rule(context))

        assert len(flags) == 1
        assert flags[0].flag_type == FlagType.POSSIBLE_WRONG_POS
        assert flags[0].metadata["place_of_service_code"] == "22"

    def test_office_setting_is_fine(self, make_bill, make_line, make_context):
        context = make_context(make_bill([make_line(1)]))
        assert wrong_pos_rule(context) == []

    def test_exempt_specialty(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        place_of_service_code="21",
                        billing_provider_specialty="Anesthesiology",
                    )
                ]
            )
        )
        assert wrong_pos_rule(context) == []

    def test_imaging_follow_up_is_skipped(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        place_of_service_code="22",
                        description="Follow-up visit with x-ray review",
                    )
                ]
            )
        )
        assert wrong_pos_rule(context) == []

    def test_coverage_denial_line_is_skipped(self, make_bill, make_line, make_context):
        context = make_context(
            make_bill(
                [
                    make_line(
                        1,
                        place_of_service_code="22",
                        adjustment_reason_code="CO-197",
                        zero_payment_flag=True,
                    )
                ]
            )
        )
        assert wrong_pos_rule(context) == []
