import logging
from typing import Dict, Optional
from apps.domain.models import ActivityLog

logger = logging.getLogger('apps')


class ActivityService:
    def log(
        self,
        organization_id: Optional[int],
        actor_id: Optional[int],
        action: str,
        resource_type: str,
        resource_id=None,
        resource_name: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> ActivityLog:
        entry = ActivityLog.objects.create(
            organization_id=organization_id,
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            resource_name=resource_name,
            metadata=metadata or {},
        )
        logger.info(f'Activity {action} on {resource_type}:{resource_id} by user {actor_id}')
        return entry
