"""Fragment codec — parse a URL fragment into a Route and back.

Grammar::

    #/dashboard
    #/new
    #/login
    #/edit/<id-or-slug>
    #/view/<id-or-slug>
    #/upload/<id-or-slug>
    #/upload/<id-or-slug>/<linkToken>

Anything else (including ``None``, ``""`` and ``"#/"``) is the dashboard.
That fallback is deliberate: a stale bookmark should land somewhere useful.
"""

from collections.abc import Mapping

from mortar.routing.route import Route, RouteName

DASHBOARD_FRAGMENT = "#/dashboard"
NEW_GRADUATION_FRAGMENT = "#/new"
LOGIN_FRAGMENT = "#/login"

_EDIT_PREFIX = "#/edit/"
_VIEW_PREFIX = "#/view/"
_UPLOAD_PREFIX = "#/upload/"

_EXACT: dict[str, RouteName] = {
    DASHBOARD_FRAGMENT: RouteName.DASHBOARD,
    NEW_GRADUATION_FRAGMENT: RouteName.NEW_GRADUATION,
    LOGIN_FRAGMENT: RouteName.LOGIN,
}


def _dashboard() -> Route:
    return Route(name=RouteName.DASHBOARD, params={}, raw_fragment=DASHBOARD_FRAGMENT)


def parse(fragment: str | None) -> Route:
    """Classify a fragment.

    Examples::

        parse("#/edit/abc")       -> Route(EDIT_GRADUATION, {"gradId": "abc"})
        parse("#/upload/abc")     -> Route(UPLOAD_PORTAL, {"gradId": "abc"})
        parse("#/upload/abc/xyz") -> Route(DIRECT_UPLOAD, {"gradId": "abc", "linkId": "xyz"})
        parse("#/unknown")        -> Route(DASHBOARD, {})
    """
    if not fragment or fragment == "#/":
        return _dashboard()

    exact = _EXACT.get(fragment)
    if exact is not None:
        return Route(name=exact, params={}, raw_fragment=fragment)

    parts = fragment.split("/")
    # parts: ['#', 'edit', '<id>', ...]
    grad_id = parts[2] if len(parts) > 2 else ""
    if not grad_id:
        return _dashboard()

    if fragment.startswith(_EDIT_PREFIX):
        return Route(RouteName.EDIT_GRADUATION, {"gradId": grad_id}, fragment)

    if fragment.startswith(_VIEW_PREFIX):
        return Route(RouteName.PUBLIC_VIEW, {"gradId": grad_id}, fragment)

    if fragment.startswith(_UPLOAD_PREFIX):
        link_id = parts[3] if len(parts) > 3 else ""
        if link_id:
            return Route(
                RouteName.DIRECT_UPLOAD, {"gradId": grad_id, "linkId": link_id}, fragment
            )
        return Route(RouteName.UPLOAD_PORTAL, {"gradId": grad_id}, fragment)

    return _dashboard()


def generate(name: RouteName | str, params: Mapping[str, str] | None = None) -> str:
    """Build the fragment for a route name. Unknown names yield the dashboard."""
    params = params or {}
    try:
        route_name = RouteName(name)
    except ValueError:
        return DASHBOARD_FRAGMENT

    match route_name:
        case RouteName.NEW_GRADUATION:
            return NEW_GRADUATION_FRAGMENT
        case RouteName.LOGIN:
            return LOGIN_FRAGMENT
        case RouteName.EDIT_GRADUATION:
            return f"{_EDIT_PREFIX}{params['gradId']}"
        case RouteName.PUBLIC_VIEW:
            return f"{_VIEW_PREFIX}{params['gradId']}"
        case RouteName.UPLOAD_PORTAL:
            return f"{_UPLOAD_PREFIX}{params['gradId']}"
        case RouteName.DIRECT_UPLOAD:
            return f"{_UPLOAD_PREFIX}{params['gradId']}/{params['linkId']}"
        case _:
            return DASHBOARD_FRAGMENT


def full_url(base_url: str, name: RouteName | str, params: Mapping[str, str] | None = None) -> str:
    """Absolute share link: ``base_url`` (origin + path, no fragment) plus the route."""
    base = base_url.split("#", 1)[0]
    return f"{base}{generate(name, params)}"


def is_public_fragment(fragment: str | None) -> bool:
    """True for fragments the public router serves without sign-in."""
    if not fragment:
        return False
    return fragment.startswith((_VIEW_PREFIX, _UPLOAD_PREFIX))
