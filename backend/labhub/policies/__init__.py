from .lab_booking_policy import authorize, can_act

__all__ = ["authorize", "can_act"]
