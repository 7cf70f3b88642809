from datetime import date

import pytest

from crm_api.schemas.customer import (
    AccountDraft,
    BranchDraft,
    ContactDraft,
    IndividualContactDraft,
    normalize_postal_code,
)
from crm_api.services.customer_records import (
    DUPLICATE_PRIMARY,
    INVALID_CORPORATE_NUMBER,
    INVALID_POSTAL_CODE,
    REQUIRED,
    UNKNOWN_BRANCH,
    drop_blank_rows,
    is_valid_postal_code,
    primary_contact_state,
    remove_branch,
    remove_contact,
    set_primary_contact,
    validate,
    validate_account,
    validate_individual_contact,
)


def _contact(last="山田", first="太郎", **kw):
    return ContactDraft(last_name=last, first_name=first, **kw)


def _codes(violations):
    return [(v.field, v.code) for v in violations]


# ============================================================
# postal code
# ============================================================

@pytest.mark.parametrize("value", [None, "1000001", "0000000"])
def test_postal_code_accepts(value):
    assert is_valid_postal_code(value)


@pytest.mark.parametrize("value", ["100-0001", "100000", "10000011", "abcdefg", "１０００００１", ""])
def test_postal_code_rejects(value):
    assert not is_valid_postal_code(value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("100-0001", "1000001"),
        ("〒100-0001", "1000001"),
        ("１００－０００１", "1000001"),
        ("100 0001", "1000001"),
        ("1000001", "1000001"),
        ("", None),
        ("   ", None),
        (None, None),
        ("100-00", "100-00"),
    ],
)
def test_normalize_postal_code(raw, expected):
    assert normalize_postal_code(raw) == expected


def test_draft_normalizes_hyphenated_postal_code():
    draft = AccountDraft(company_name="ABC測量", postal_code="530-0001")
    assert draft.postal_code == "5300001"
    assert validate_account(draft) == []


def test_partial_postal_code_is_rejected():
    draft = AccountDraft(company_name="ABC測量", postal_code="530-00")
    assert ("postal_code", INVALID_POSTAL_CODE) in _codes(validate_account(draft))


def test_blank_strings_become_none():
    draft = IndividualContactDraft(last_name=" 佐藤 ", first_name="花子", phone="  ", birth_date="")
    assert draft.last_name == "佐藤"
    assert draft.phone is None
    assert draft.birth_date is None


# ============================================================
# account
# ============================================================

def test_account_requires_company_name():
    assert _codes(validate_account(AccountDraft())) == [("company_name", REQUIRED)]


def test_corporate_number_must_be_digits():
    draft = AccountDraft(company_name="ABC", corporate_number="12345-67890")
    assert ("corporate_number", INVALID_CORPORATE_NUMBER) in _codes(validate_account(draft))

    ok = AccountDraft(company_name="ABC", corporate_number="１２３４５６７８９０１２３")
    assert ok.corporate_number == "1234567890123"
    assert validate_account(ok) == []


@pytest.mark.parametrize("n_primary, valid", [(0, True), (1, True), (2, False), (3, False)])
def test_at_most_one_primary(n_primary, valid):
    contacts = [_contact(first=f"太郎{i}", is_primary=i < n_primary) for i in range(3)]
    violations = validate_account(AccountDraft(company_name="ABC", contacts=contacts))
    assert (violations == []) is valid
    if not valid:
        assert {v.code for v in violations} == {DUPLICATE_PRIMARY}
        assert len(violations) == n_primary - 1


def test_contact_and_branch_required_fields():
    draft = AccountDraft(
        company_name="ABC",
        contacts=[ContactDraft(last_name="山田")],
        branches=[BranchDraft(id="temp-1", postal_code="12")],
    )
    assert _codes(validate_account(draft)) == [
        ("branches[0].name", REQUIRED),
        ("branches[0].postal_code", INVALID_POSTAL_CODE),
        ("contacts[0].first_name", REQUIRED),
    ]


def test_contact_branch_must_belong_to_account():
    draft = AccountDraft(
        company_name="ABC",
        branches=[BranchDraft(id="temp-1", name="大阪支店")],
        contacts=[
            _contact(branch_id="temp-1", is_primary=True),
            _contact(first="次郎", branch_id="other-accounts-branch"),
        ],
    )
    assert _codes(validate_account(draft)) == [("contacts[1].branch_id", UNKNOWN_BRANCH)]


def test_all_violations_reported_at_once():
    draft = AccountDraft(
        postal_code="abc",
        contacts=[_contact(is_primary=True), _contact(first=None, is_primary=True)],
    )
    codes = {v.code for v in validate_account(draft)}
    assert codes == {REQUIRED, INVALID_POSTAL_CODE, DUPLICATE_PRIMARY}


# ============================================================
# individual / dispatch
# ============================================================

def test_individual_contact_validation():
    ok = IndividualContactDraft(last_name="佐藤", first_name="花子", birth_date=date(1980, 1, 2), postal_code="1500002")
    assert validate_individual_contact(ok) == []

    bad = IndividualContactDraft(first_name="花子", postal_code="150-00")
    assert _codes(validate_individual_contact(bad)) == [
        ("last_name", REQUIRED),
        ("postal_code", INVALID_POSTAL_CODE),
    ]


def test_validate_dispatches_by_kind():
    assert _codes(validate(BranchDraft())) == [("name", REQUIRED)]
    assert _codes(validate(ContactDraft(first_name="太郎"))) == [("last_name", REQUIRED)]
    assert validate(AccountDraft(company_name="ABC")) == []
    assert validate(IndividualContactDraft(last_name="a", first_name="b")) == []
    with pytest.raises(TypeError):
        validate(object())


# ============================================================
# draft operations
# ============================================================

def test_primary_contact_state():
    assert primary_contact_state([]) == "none"
    assert primary_contact_state([_contact()]) == "unset"
    assert primary_contact_state([_contact(), _contact(is_primary=True)]) == "set"


def test_set_primary_contact_is_exclusive():
    draft = AccountDraft(company_name="ABC", contacts=[_contact(is_primary=True), _contact(), _contact()])
    updated = set_primary_contact(draft, 2)
    assert [c.is_primary for c in updated.contacts] == [False, False, True]
    # 元の draft は変更しない
    assert [c.is_primary for c in draft.contacts] == [True, False, False]


def test_remove_primary_contact_promotes_first():
    draft = AccountDraft(company_name="ABC", contacts=[_contact(first="A"), _contact(first="B", is_primary=True), _contact(first="C")])
    updated = remove_contact(draft, 1)
    assert [c.first_name for c in updated.contacts] == ["A", "C"]
    assert [c.is_primary for c in updated.contacts] == [True, False]


def test_remove_non_primary_contact_keeps_primary():
    draft = AccountDraft(company_name="ABC", contacts=[_contact(first="A"), _contact(first="B", is_primary=True)])
    updated = remove_contact(draft, 0)
    assert [c.is_primary for c in updated.contacts] == [True]


def test_remove_branch_clears_references():
    draft = AccountDraft(
        company_name="ABC",
        branches=[BranchDraft(id="b1", name="大阪"), BranchDraft(id="b2", name="名古屋")],
        contacts=[_contact(branch_id="b1"), _contact(first="次郎", branch_id="b2")],
    )
    updated = remove_branch(draft, "b1")
    assert [b.id for b in updated.branches] == ["b2"]
    assert [c.branch_id for c in updated.contacts] == [None, "b2"]
    assert validate_account(updated) == []


def test_drop_blank_rows():
    draft = AccountDraft(
        company_name="ABC",
        branches=[BranchDraft(id="b1", name=" "), BranchDraft(id="b2", name="名古屋")],
        contacts=[ContactDraft(), _contact(branch_id="b1"), _contact(first="次郎", branch_id="b2")],
    )
    cleaned = drop_blank_rows(draft)
    assert [b.id for b in cleaned.branches] == ["b2"]
    assert [c.branch_id for c in cleaned.contacts] == [None, "b2"]
    assert validate_account(cleaned) == []
