"""
Unit tests for founder relationship contacts.
"""
import pytest

from venturematch.admin import FirmService
from venturematch.contacts import FounderContactService
from venturematch.core.models import FounderContact


@pytest.fixture
def contacts(test_db):
    return FounderContactService(test_db)


def _contact(db, founder_id, full_name, email=None, stage="Discovery"):
    row = FounderContact(founder_id=founder_id, full_name=full_name, email=email, stage=stage)
    db.add(row)
    db.commit()
    return row


@pytest.mark.unit
def test_list_contacts_scoped_and_filtered(contacts, test_db, founder, make_account):
    other = make_account("founder", "linus@kernel.io")
    _contact(test_db, founder["id"], "John Smith", stage="Discovery")
    _contact(test_db, founder["id"], "Sarah Johnson", stage="Meeting")
    _contact(test_db, other["id"], "Someone Else")

    assert {c["full_name"] for c in contacts.list_contacts(founder["id"])} == {"John Smith", "Sarah Johnson"}
    assert [c["full_name"] for c in contacts.list_contacts(founder["id"], stage="Meeting")] == ["Sarah Johnson"]


@pytest.mark.unit
def test_get_contact_by_email(contacts, test_db, founder):
    _contact(test_db, founder["id"], "John Smith", email="john@acme.vc")

    assert contacts.get_contact_by_email("john@acme.vc", founder["id"])["full_name"] == "John Smith"
    assert contacts.get_contact_by_email("nobody@acme.vc", founder["id"]) is None


@pytest.mark.unit
def test_update_contact(contacts, test_db, founder):
    row = _contact(test_db, founder["id"], "John Smith", email="john@acme.vc")

    updated = contacts.update_contact(row.id, founder["id"], {"notes": "  intro via Ada ", "phone": ""})

    assert updated["notes"] == "intro via Ada"
    assert updated["phone"] is None
    assert updated["full_name"] == "John Smith"


@pytest.mark.unit
def test_update_contact_needs_an_identifier(contacts, test_db, founder):
    row = _contact(test_db, founder["id"], "John Smith")

    with pytest.raises(ValueError):
        contacts.update_contact(row.id, founder["id"], {"full_name": " "})

    test_db.refresh(row)
    assert row.full_name == "John Smith"


@pytest.mark.unit
def test_other_founders_cannot_touch_contact(contacts, test_db, founder, make_account):
    row = _contact(test_db, founder["id"], "John Smith")
    other = make_account("founder", "linus@kernel.io")

    with pytest.raises(LookupError):
        contacts.update_contact_status(row.id, other["id"], "Meeting")
    assert contacts.delete_contact(row.id, other["id"]) is False
    assert test_db.query(FounderContact).count() == 1


@pytest.mark.unit
def test_update_status_and_delete(contacts, test_db, founder):
    row = _contact(test_db, founder["id"], "John Smith")

    assert contacts.update_contact_status(row.id, founder["id"], "Term Sheet")["stage"] == "Term Sheet"
    with pytest.raises(ValueError, match="Status is required"):
        contacts.update_contact_status(row.id, founder["id"], "")

    assert contacts.delete_contact(row.id, founder["id"]) is True
    assert contacts.list_contacts(founder["id"]) == []


@pytest.mark.unit
def test_list_shared_firms(contacts, test_db, founder):
    saved = FirmService(test_db).create_firms([{"firm_name": "Acme Ventures", "investor_type": "VC"}])
    firm_id = saved["savedInvestors"][0]["id"]
    FirmService(test_db).send_to_founders([founder["id"]], [firm_id])

    shared = contacts.list_shared_firms(founder["id"])

    assert len(shared) == 1
    assert shared[0]["firm_id"] == firm_id
    assert shared[0]["firm_name"] == "Acme Ventures"
    assert shared[0]["added_by_platform"] is True
