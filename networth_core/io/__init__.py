from networth_core.io.brackets import load_bracket_index  # noqa: F401
from networth_core.io.config import inputs_from_dict, load_inputs, load_overrides  # noqa: F401
from networth_core.io.export import result_to_dict, snapshots_to_frame  # noqa: F401

__all__ = ["load_bracket_index", "load_inputs", "load_overrides", "inputs_from_dict", "result_to_dict", "snapshots_to_frame"]
