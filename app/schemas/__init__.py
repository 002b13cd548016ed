from app.schemas.user import User, UserRole, UserResponse, UserRoleUpdate
from app.schemas.client import Client, ClientCreate, ClientUpdate
from app.schemas.case import Matter, MatterCreate, MatterUpdate, CaseStatus, CaseOutcome, StatusChange, StatusDetails
from app.schemas.appointment import Appointment, AppointmentCreate, AppointmentUpdate, ConsultationRequest
from app.schemas.invoice import Invoice, InvoiceCreate, InvoiceItem, PaymentStatus, PaymentCreate, PaymentResult
from app.schemas.receipt import Receipt
from app.schemas.document import Attachment
from app.schemas.notification import Notification, NotificationList
from app.schemas.activity import Activity, ActivityType

# Export all schemas
__all__ = [
    'User', 'UserRole', 'UserResponse', 'UserRoleUpdate',
    'Client', 'ClientCreate', 'ClientUpdate',
    'Matter', 'MatterCreate', 'MatterUpdate', 'CaseStatus', 'CaseOutcome', 'StatusChange', 'StatusDetails',
    'Appointment', 'AppointmentCreate', 'AppointmentUpdate', 'ConsultationRequest',
    'Invoice', 'InvoiceCreate', 'InvoiceItem', 'PaymentStatus', 'PaymentCreate', 'PaymentResult',
    'Receipt',
    'Attachment',
    'Notification', 'NotificationList',
    'Activity', 'ActivityType',
]
