import logging
import threading
from typing import Iterable, List, Optional
from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from apps.domain.models import Notification

logger = logging.getLogger('apps')


class NotificationService:
    def dispatch(
        self,
        recipient_id: int,
        type: str,
        title: str,
        message: str,
        link: str = '',
        related_id=None,
    ) -> Notification:
        notification = Notification.objects.create(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            link=link,
            related_id=str(related_id) if related_id is not None else None,
        )

        if getattr(settings, 'SIGNATURE_EMAIL_NOTIFICATIONS', False):
            recipient = User.objects.filter(pk=recipient_id).first()
            if recipient and recipient.email:
                self._send_email_in_background(recipient.email, title, message, link)

        return notification

    def dispatch_many(self, recipient_ids: Iterable[int], exclude_user_id: Optional[int] = None, **notification) -> List[Notification]:
        sent = []
        for recipient_id in dict.fromkeys(recipient_ids):
            if exclude_user_id is not None and recipient_id == exclude_user_id:
                continue
            sent.append(self.dispatch(recipient_id, **notification))
        return sent

    def notify_organization(self, organization_id: int, exclude_user_id: Optional[int] = None, **notification) -> List[Notification]:
        recipient_ids = User.objects.filter(
            member__organization_id=organization_id, is_active=True
        ).values_list('id', flat=True)
        return self.dispatch_many(recipient_ids, exclude_user_id=exclude_user_id, **notification)

    def notify_admins(self, exclude_user_id: Optional[int] = None, **notification) -> List[Notification]:
        recipient_ids = User.objects.filter(
            member__role__in=['admin', 'staff'], is_active=True
        ).values_list('id', flat=True)
        return self.dispatch_many(recipient_ids, exclude_user_id=exclude_user_id, **notification)

    def send_email(self, email: str, subject: str, message: str, link: str = '') -> None:
        body = message
        if link:
            body = f'{message}\n\n{settings.PORTAL_BASE_URL}{link}'
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=False)

    def _send_email_in_background(self, email: str, subject: str, message: str, link: str) -> None:
        def send():
            try:
                self.send_email(email, subject, message, link)
                logger.info(f'Notification email sent to {email}')
            except Exception as e:
                logger.error(f'Error sending notification email to {email}: {str(e)}')

        thread = threading.Thread(target=send, daemon=True)
        thread.start()
