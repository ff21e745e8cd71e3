from .auth import User, SessionToken, ROLES, ROLE_OWNER, ROLE_EMPLOYEE, ROLE_CUSTOMER
from .vouchers import Voucher, Distribution, EmployeeStock, PAYMENT_STATUSES
from .sales import Sale, CustomerVoucher

__all__ = [
    'User', 'SessionToken', 'ROLES', 'ROLE_OWNER', 'ROLE_EMPLOYEE', 'ROLE_CUSTOMER',
    'Voucher', 'Distribution', 'EmployeeStock', 'PAYMENT_STATUSES',
    'Sale', 'CustomerVoucher',
]
