# finance_tracker/notifications/__init__.py
from importlib import import_module


def get_notifier(name, config):
    """Instantiate the notifier registered under *name* (or a dotted path)."""
    path = config.get('notifiers', {}).get(name, name)
    module_name, cls_name = path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(config)
