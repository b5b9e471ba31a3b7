from review_admin.clients.admin_api import AdminApiClient
from review_admin.result import ErrorKind, Result
from review_admin.schemas import MenuForm, MenuItem, MenuListView
from review_admin.services.base import attempt, read_or_empty
from review_admin.session import AdminSession
from review_admin.view_model import group_menu_items


def list_menus(client: AdminApiClient, session: AdminSession) -> MenuListView:
    items, error = read_or_empty("list menus", client.list_menus, [], session)
    return MenuListView(groups=group_menu_items(items), error=error)


def get_menu(client: AdminApiClient, session: AdminSession, menu_id: str) -> Result[MenuItem]:
    # The admin API has no single-item menu endpoint
    result = attempt("list menus", client.list_menus, session)
    if not result.ok:
        return result
    for item in result.value:
        if item.id == menu_id:
            return Result.success(item)
    return Result.failure(ErrorKind.NOT_FOUND, "Item not found")


def create_menu(client: AdminApiClient, session: AdminSession, form: MenuForm) -> Result[MenuItem]:
    return attempt("create menu item", client.create_menu, session, form.to_payload())


def update_menu(client: AdminApiClient, session: AdminSession, menu_id: str, form: MenuForm) -> Result[MenuItem]:
    return attempt(f"update menu item {menu_id}", client.update_menu, session, menu_id, form.to_payload())


def delete_menu(client: AdminApiClient, session: AdminSession, menu_id: str) -> Result[None]:
    return attempt(f"delete menu item {menu_id}", client.delete_menu, session, menu_id)
