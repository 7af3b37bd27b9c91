# ledger_tracker/outputs/__init__.py
from importlib import import_module


def get_output(name, config):
    try:
        path = config['output_modules'][name]
    except KeyError:
        raise ValueError(f"Unknown output format '{name}'") from None
    module_name, cls_name = path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(config)
