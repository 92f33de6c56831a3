"""
Shared services module

모든 임포트는 직접 경로를 사용하세요:
- shared.services.record_store
- shared.services.field_classifier
- shared.services.snapshot_persistence
- shared.services.sync_monitor
- shared.services.service_factory
"""

# __init__.py를 의도적으로 비워두어 불필요한 bulk import 방지

__all__ = []
