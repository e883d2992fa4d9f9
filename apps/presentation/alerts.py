from datetime import timedelta
from django.db.models import QuerySet
from django.utils import timezone
from apps.domain.models import SignatureRequest


def get_signature_request_alerts(requests: QuerySet):
    alerts = []
    now = timezone.now()

    for signature_request in requests.filter(status='pending').select_related('document'):
        alert = None

        # Pendente sem prazo há muito tempo
        if not signature_request.expires_at:
            days_since_request = (now - signature_request.requested_at).days
            if days_since_request >= 7:
                alert = {
                    'id': signature_request.id,
                    'request_id': signature_request.id,
                    'title': signature_request.title,
                    'type': 'pending_too_long',
                    'message': f'Solicitação "{signature_request.title}" está pendente há {days_since_request} dias',
                    'severity': 'warning',
                    'created_at': signature_request.requested_at.isoformat()
                }

        # Prazo vencido, mas ainda sem transição para expired
        elif signature_request.is_past_due(now):
            alert = {
                'id': signature_request.id,
                'request_id': signature_request.id,
                'title': signature_request.title,
                'type': 'expired',
                'message': f'Solicitação "{signature_request.title}" expirou e precisa de atenção',
                'severity': 'error',
                'created_at': signature_request.expires_at.isoformat()
            }

        else:
            days_until_expiry = (signature_request.expires_at - now).days
            if days_until_expiry <= 3:
                alert = {
                    'id': signature_request.id,
                    'request_id': signature_request.id,
                    'title': signature_request.title,
                    'type': 'expiring_soon',
                    'message': f'Solicitação "{signature_request.title}" expira em {days_until_expiry} dia(s)',
                    'severity': 'warning',
                    'created_at': signature_request.expires_at.isoformat()
                }

        # Sem hash de referência: assinatura seguirá sem verificação de integridade
        if alert is None and not signature_request.document_hash:
            minutes_since_request = (now - signature_request.requested_at).total_seconds() / 60
            if minutes_since_request >= 5:
                alert = {
                    'id': signature_request.id,
                    'request_id': signature_request.id,
                    'title': signature_request.title,
                    'type': 'missing_baseline_hash',
                    'message': f'Solicitação "{signature_request.title}" não possui hash de referência do documento',
                    'severity': 'info',
                    'created_at': signature_request.requested_at.isoformat()
                }

        if alert:
            alerts.append(alert)

    severity_order = {'error': 0, 'warning': 1, 'info': 2}
    alerts.sort(key=lambda x: (severity_order.get(x.get('severity', 'info'), 2), x.get('created_at', '')))

    return alerts


def get_signature_request_metrics(requests: QuerySet):
    total = requests.count()

    status_counts = {}
    for status_choice in SignatureRequest.STATUS_CHOICES:
        status_counts[status_choice[0]] = requests.filter(status=status_choice[0]).count()

    signed_count = status_counts.get('signed', 0)
    signature_rate = (signed_count / total * 100) if total > 0 else 0

    avg_signature_time = None
    times = []
    for signature_request in requests.filter(status='signed', signed_at__isnull=False):
        delta = signature_request.signed_at - signature_request.requested_at
        times.append(delta.total_seconds() / 3600)
    if times:
        avg_signature_time = sum(times) / len(times)

    now = timezone.now()
    expiring_soon = requests.filter(
        status='pending',
        expires_at__lte=now + timedelta(days=3),
        expires_at__gte=now
    ).count()

    return {
        'total_requests': total,
        'status_breakdown': status_counts,
        'signature_rate': round(signature_rate, 2),
        'average_signature_time_hours': round(avg_signature_time, 2) if avg_signature_time is not None else None,
        'expiring_soon_count': expiring_soon,
        'missing_baseline_count': requests.filter(status='pending', document_hash__isnull=True).count(),
    }
