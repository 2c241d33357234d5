"""Tests for the demo data seed."""

from chat.constants import SEED_CONFIG
from chat.models import Business, Conversation, Message
from chat.seed import seed_demo_data
from chat.signals import seed_after_migrate


class TestSeedDemoData:
    def test_creates_sentinel_business_and_conversations(self, db):
        assert seed_demo_data() is True

        business = Business.objects.get(pk="tech-store")
        assert business.name == "Tech Store Support"
        assert Conversation.objects.filter(business=business).count() == 5
        assert Message.objects.filter(conversation__business=business).count() == 5
        assert set(Conversation.objects.values_list("customer_name", flat=True)) == {
            row[0] for row in SEED_CONFIG.CONVERSATIONS
        }

    def test_second_run_is_a_no_op(self, db):
        seed_demo_data()

        assert seed_demo_data() is False
        assert Conversation.objects.count() == 5

    def test_existing_sentinel_blocks_seed(self, db):
        Business.objects.create(id="tech-store", name="Renamed")

        assert seed_demo_data() is False
        assert Business.objects.get(pk="tech-store").name == "Renamed"
        assert not Conversation.objects.exists()


class TestSeedAfterMigrate:
    def test_disabled_by_setting(self, db, settings):
        settings.CHAT_SEED_DEMO_DATA = False

        seed_after_migrate(sender=None)

        assert not Business.objects.exists()

    def test_enabled_by_setting(self, db, settings):
        settings.CHAT_SEED_DEMO_DATA = True

        seed_after_migrate(sender=None)

        assert Business.objects.filter(pk="tech-store").exists()
