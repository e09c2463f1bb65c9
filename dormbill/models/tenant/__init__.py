from dormbill.models.tenant.tenant import Tenant

__all__ = ["Tenant"]
