from takeflow.server.starlette_app import TakeApp

__all__ = ["TakeApp"]
