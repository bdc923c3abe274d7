"""Feature modules registered through ``core.module_registry``."""
