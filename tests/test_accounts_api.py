import uuid

from crm_api.models.account import BranchORM, ContactORM

BASE = "/api/v1"


def _account_payload(**kw):
    payload = {
        "company_name": "株式会社ABC測量",
        "company_name_kana": "カブシキガイシャエービーシーソクリョウ",
        "corporate_number": "1234567890123",
        "main_phone": "03-1234-5678",
        "postal_code": "100-0001",
        "prefecture": "東京都",
        "city": "千代田区",
        "street": "千代田1-1",
        "industry": "建設業",
        "branches": [{"id": "temp-1", "name": "大阪支店", "postal_code": "530-0001"}],
        "contacts": [
            {"last_name": "山田", "first_name": "太郎", "is_primary": True},
            {"last_name": "佐藤", "first_name": "次郎", "branch_id": "temp-1"},
            {"last_name": "", "first_name": ""},
        ],
    }
    payload.update(kw)
    return payload


def _create(client, **kw):
    r = client.post(f"{BASE}/accounts", json=_account_payload(**kw))
    assert r.status_code == 200, r.text
    return r.json()


def test_create_account_normalizes_and_links(client):
    body = _create(client)

    assert body["company_name_kana"] == "エービーシーソクリョウ"
    assert body["postal_code"] == "1000001"
    assert body["primary_contact_state"] == "set"

    assert len(body["branches"]) == 1
    branch = body["branches"][0]
    assert branch["postal_code"] == "5300001"

    # 空行の担当者は保存しない / 主担当が先頭
    assert [c["last_name"] for c in body["contacts"]] == ["山田", "佐藤"]
    assert body["contacts"][1]["branch_id"] == branch["id"]


def test_create_account_reports_all_violations(client):
    r = client.post(
        f"{BASE}/accounts",
        json={
            "company_name": " ",
            "postal_code": "12-34",
            "contacts": [
                {"last_name": "山田", "first_name": "太郎", "is_primary": True},
                {"last_name": "佐藤", "first_name": "次郎", "is_primary": True, "branch_id": "nope"},
            ],
        },
    )
    assert r.status_code == 422, r.text
    fields = {v["field"]: v["code"] for v in r.json()["detail"]["violations"]}
    assert fields == {
        "company_name": "required",
        "postal_code": "invalid_postal_code",
        "contacts[1].branch_id": "unknown_branch",
        "contacts[1].is_primary": "duplicate_primary_contact",
    }


def test_unset_primary_is_not_an_error(client):
    body = _create(client, contacts=[{"last_name": "山田", "first_name": "太郎"}])
    assert body["primary_contact_state"] == "unset"

    body = _create(client, contacts=[])
    assert body["primary_contact_state"] == "none"


def test_get_and_list_accounts(client):
    created = _create(client)
    _create(client, company_name="有限会社いろは", company_name_kana="ユウゲンガイシャイロハ", branches=[], contacts=[])

    r = client.get(f"{BASE}/accounts/{created['id']}")
    assert r.status_code == 200
    assert r.json()["company_name"] == "株式会社ABC測量"

    r = client.get(f"{BASE}/accounts")
    assert r.status_code == 200
    # 法人格を除いた読みで並ぶ
    assert [a["company_name_kana"] for a in r.json()] == ["イロハ", "エービーシーソクリョウ"]


def test_get_missing_account(client):
    r = client.get(f"{BASE}/accounts/{uuid.uuid4()}")
    assert r.status_code == 404


def test_update_account_upserts_branches(client, db_session):
    created = _create(client)
    osaka_id = created["branches"][0]["id"]

    r = client.put(
        f"{BASE}/accounts/{created['id']}",
        json=_account_payload(
            company_name="株式会社ABC測量設計",
            branches=[
                {"id": osaka_id, "name": "大阪営業所"},
                {"id": "temp-2", "name": "名古屋支店"},
            ],
            contacts=[
                {"last_name": "山田", "first_name": "太郎"},
                {"last_name": "佐藤", "first_name": "次郎", "is_primary": True, "branch_id": "temp-2"},
                {"last_name": "鈴木", "first_name": "三郎", "branch_id": osaka_id},
            ],
        ),
    )
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["company_name"] == "株式会社ABC測量設計"
    branches = {b["name"]: b["id"] for b in body["branches"]}
    assert branches["大阪営業所"] == osaka_id
    assert "名古屋支店" in branches

    assert body["contacts"][0]["last_name"] == "佐藤"
    assert body["contacts"][0]["branch_id"] == branches["名古屋支店"]
    suzuki = next(c for c in body["contacts"] if c["last_name"] == "鈴木")
    assert suzuki["branch_id"] == osaka_id

    # 旧担当者は論理削除
    deleted = db_session.query(ContactORM).filter(ContactORM.deleted_at.isnot(None)).count()
    assert deleted == 2


def test_update_account_keeps_branch_id_given_in_uppercase(client):
    created = _create(client)
    osaka_id = created["branches"][0]["id"]

    r = client.put(
        f"{BASE}/accounts/{created['id']}",
        json=_account_payload(
            branches=[{"id": osaka_id.upper(), "name": "大阪支店"}],
            contacts=[
                {"last_name": "山田", "first_name": "太郎", "is_primary": True},
                {"last_name": "佐藤", "first_name": "次郎", "branch_id": osaka_id},
            ],
        ),
    )
    assert r.status_code == 200, r.text
    body = r.json()

    assert [b["id"] for b in body["branches"]] == [osaka_id]
    sato = next(c for c in body["contacts"] if c["last_name"] == "佐藤")
    assert sato["branch_id"] == osaka_id


def test_update_account_removing_branch_clears_contact_refs(client, db_session):
    created = _create(client)
    osaka_id = created["branches"][0]["id"]

    r = client.put(
        f"{BASE}/accounts/{created['id']}",
        json=_account_payload(branches=[], contacts=[{"last_name": "山田", "first_name": "太郎", "is_primary": True}]),
    )
    assert r.status_code == 200, r.text
    assert r.json()["branches"] == []

    branch = db_session.get(BranchORM, uuid.UUID(osaka_id))
    assert branch.deleted_at is not None
    refs = db_session.query(ContactORM).filter(ContactORM.branch_id == uuid.UUID(osaka_id)).count()
    assert refs == 0


def test_update_rejects_branch_of_other_account(client):
    a = _create(client)
    b = _create(client, company_name="別会社")
    other_branch = b["branches"][0]["id"]

    r = client.put(
        f"{BASE}/accounts/{a['id']}",
        json=_account_payload(
            contacts=[{"last_name": "山田", "first_name": "太郎", "is_primary": True, "branch_id": other_branch}],
        ),
    )
    assert r.status_code == 422
    assert r.json()["detail"]["violations"][0]["code"] == "unknown_branch"


def test_delete_account_is_soft_and_cascades(client, db_session):
    created = _create(client)

    r = client.delete(f"{BASE}/accounts/{created['id']}")
    assert r.status_code == 200
    assert r.json() == {"deleted": True}

    assert client.get(f"{BASE}/accounts/{created['id']}").status_code == 404
    assert client.get(f"{BASE}/accounts").json() == []

    assert db_session.query(BranchORM).filter(BranchORM.deleted_at.is_(None)).count() == 0
    contacts = db_session.query(ContactORM).all()
    assert contacts and all(c.deleted_at is not None for c in contacts)
    assert all(c.branch_id is None for c in contacts)

    assert client.delete(f"{BASE}/accounts/{created['id']}").status_code == 404
