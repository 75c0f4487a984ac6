"""
Mixins for common functionality.
"""

from __future__ import annotations

from typing import Any


class Configurable:
    """
    Mixin class for handling configuration overrides.

    Classes using this mixin call apply_overrides to set lowercase attributes
    from an override dict, falling back to the matching uppercase attribute
    of a config object.
    """

    def apply_overrides(
        self,
        overrides: dict[str, Any],
        config_obj: Any,
        attr_list: list[str] | None = None,
    ) -> None:
        """
        Sets self.attr = overrides.get(attr, config_obj.ATTR) for each attr.

        Overrides whose value is None fall back to the config default.
        """
        for attr in attr_list or []:
            default_value = getattr(config_obj, attr.upper(), None)
            value = overrides.get(attr)
            setattr(self, attr, default_value if value is None else value)
