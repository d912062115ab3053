"""Surrounding-code context sent to the naming oracle."""

from deminify.parsing.scopes import Binding


def surrounding_context(binding: Binding, window: int) -> str:
    """Return at most ``window`` characters of code around ``binding``.

    - Owner scope shorter than the window: the whole owner scope.
    - Owner is the program: exactly ``window`` characters centred on the
      binding, shifted inward when the centre is near either end of the file.
    - Otherwise: the first ``window`` characters of the owner scope.
    """
    text = binding.owner_scope_text
    if len(text) < window:
        return text
    if binding.is_program_scoped:
        center = (binding.start + binding.end) // 2
        lo = min(max(center - window // 2, 0), len(text) - window)
        return text[lo : lo + window]
    return text[:window]
