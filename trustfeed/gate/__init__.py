from .replication import ReplicationGate

__all__ = ["ReplicationGate"]
