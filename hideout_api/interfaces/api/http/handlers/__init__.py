"""
===============================================================================
TARJETA CRC — interfaces/api/http/handlers (Package exports)
===============================================================================

Responsabilidades:
  - Exponer los handlers canónicos que consumen routes.py y api/aliases.py.

Reglas:
  - Firma: handler(request: ApiRequest, params, mode=CANONICAL) para los
    handlers duales; los demás no reciben mode.
===============================================================================
"""

from .builds import (
    delete_build_by_id,
    get_build_by_id,
    get_builds,
    save_build,
    toggle_build_favorite,
    translate_build_by_id,
    update_build_by_id,
)
from .checklist import (
    add_checklist_item,
    clear_checklist,
    delete_checklist_item_by_id,
    get_checklist,
    update_checklist_item_by_id,
)
from .craft import craft_build
from .hideouts import (
    create_hideout,
    delete_hideout,
    get_current_hideout,
    join_hideout,
    update_hideout,
)
from .party_members import delete_party_member, get_party_members, save_party_member
from .stash import (
    add_stash_item,
    delete_stash_item_by_name,
    get_stash,
    update_stash_item_by_name,
)

__all__ = [
    "add_checklist_item",
    "add_stash_item",
    "clear_checklist",
    "craft_build",
    "create_hideout",
    "delete_build_by_id",
    "delete_checklist_item_by_id",
    "delete_hideout",
    "delete_party_member",
    "delete_stash_item_by_name",
    "get_build_by_id",
    "get_builds",
    "get_checklist",
    "get_current_hideout",
    "get_party_members",
    "get_stash",
    "join_hideout",
    "save_build",
    "save_party_member",
    "toggle_build_favorite",
    "translate_build_by_id",
    "update_build_by_id",
    "update_checklist_item_by_id",
    "update_hideout",
    "update_stash_item_by_name",
]
