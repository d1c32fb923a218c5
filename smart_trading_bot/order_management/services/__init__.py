from .position_manager import PositionLifecycleManager
