from .init_data import build_data_check_string, parse_init_data, sign_init_data, verify_init_data
from .paystack import verify_paystack_event
from .stripe import verify_stripe_event

__all__ = [
    "build_data_check_string",
    "parse_init_data",
    "sign_init_data",
    "verify_init_data",
    "verify_paystack_event",
    "verify_stripe_event",
]
