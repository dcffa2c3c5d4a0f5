from takeflow.auth.logout_link import LOGOUT_FLAG, LOGOUT_REL, LOGOUT_VALUE, LogoutLink

__all__ = ["LOGOUT_FLAG", "LOGOUT_REL", "LOGOUT_VALUE", "LogoutLink"]
