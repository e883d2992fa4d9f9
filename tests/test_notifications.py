import pytest
from unittest.mock import patch
from django.core import mail
from apps.domain.models import Notification, ActivityLog
from apps.application.services.notification_service import NotificationService
from apps.application.services.activity_service import ActivityService


@pytest.mark.django_db
class TestNotificationService:
    def test_dispatch_creates_in_app_notification(self, client_user):
        notification = NotificationService().dispatch(
            client_user.id, type='signature_request', title='Signature Required',
            message='Please sign', link='/signatures', related_id=7
        )
        assert notification.recipient == client_user
        assert notification.related_id == '7'
        assert notification.is_read is False

    @patch.object(NotificationService, '_send_email_in_background')
    def test_email_only_when_enabled(self, mock_send, client_user, settings):
        service = NotificationService()
        service.dispatch(client_user.id, type='system', title='T', message='M')
        mock_send.assert_not_called()

        settings.SIGNATURE_EMAIL_NOTIFICATIONS = True
        service.dispatch(client_user.id, type='system', title='T', message='M', link='/signatures')
        mock_send.assert_called_once_with('bob@example.com', 'T', 'M', '/signatures')

    def test_send_email_includes_portal_link(self, settings):
        settings.PORTAL_BASE_URL = 'https://portal.example.com'
        NotificationService().send_email('x@example.com', 'Subject', 'Body', '/signatures')
        assert len(mail.outbox) == 1
        assert 'https://portal.example.com/signatures' in mail.outbox[0].body

    def test_dispatch_many_excludes_actor_and_duplicates(self, client_user, second_client):
        sent = NotificationService().dispatch_many(
            [client_user.id, second_client.id, second_client.id],
            exclude_user_id=client_user.id,
            type='system', title='T', message='M'
        )
        assert [n.recipient_id for n in sent] == [second_client.id]

    def test_notify_admins(self, staff_user, client_user):
        NotificationService().notify_admins(type='system', title='T', message='M')
        assert list(Notification.objects.values_list('recipient_id', flat=True)) == [staff_user.id]


@pytest.mark.django_db
def test_activity_log(organization, staff_user):
    entry = ActivityService().log(
        organization.id, staff_user.id, 'requested_signature', 'signature_request',
        resource_id=3, resource_name='Contrato', metadata={'signers': 2}
    )
    assert ActivityLog.objects.get() == entry
    assert entry.resource_id == '3'
    assert entry.metadata == {'signers': 2}
