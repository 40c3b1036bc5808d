from second_factor.models.user import UserSecurityRecord
from second_factor.models.pending_setup import PendingSetup
from second_factor.models.audit import AuditEvent, AuditOperation
