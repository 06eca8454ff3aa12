"""
Click target resolution.

Users rarely click the element a test should click: they hit an SVG icon
inside a button or a span inside a navigation link. The walk below moves
a click up its captured ancestor chain onto the most meaningful element.

The walk is a bounded loop over an ordered list of independent resolvers.
Each resolver is a predicate over one ancestor; the first resolver (in
list order) that matches any ancestor within range decides. Adding a
heuristic means adding a resolver, not editing the walk.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from flowscribe.models.events import ElementSnapshot
from flowscribe.platforms.base import TargetPlatform


@dataclass
class WalkContext:
    """
    Inputs shared by all resolvers for one click.
    
    Attributes:
        platform: Target platform heuristics
        nav_pane_depth: Ancestors inspected when testing nav-pane membership
        client_x: Horizontal click position, if known
        spatial_fallback_px: Left-edge width treated as the nav pane (None disables)
        max_label_length: Upper bound on text accepted by the spatial fallback
    """
    platform: TargetPlatform
    nav_pane_depth: int = 15
    client_x: Optional[float] = None
    spatial_fallback_px: Optional[int] = None
    max_label_length: int = 80


Resolver = Callable[[Sequence[ElementSnapshot], int, WalkContext], bool]


def in_nav_pane(
    chain: Sequence[ElementSnapshot],
    index: int,
    platform: TargetPlatform,
    depth: int = 15,
) -> bool:
    """Whether ``chain[index]`` or one of its next ``depth - 1`` ancestors marks the nav pane."""
    return any(platform.is_nav_container(s) for s in chain[index:index + depth])


def _has_label(snapshot: ElementSnapshot) -> bool:
    return bool(snapshot.text or snapshot.direct_text or snapshot.aria_label or snapshot.title)


def expand_navigation_control(chain: Sequence[ElementSnapshot], index: int, ctx: WalkContext) -> bool:
    return ctx.platform.is_expand_nav_control(chain[index])


def navigation_pane_link(chain: Sequence[ElementSnapshot], index: int, ctx: WalkContext) -> bool:
    snapshot = chain[index]
    if not (snapshot.control_name or snapshot.is_link_like):
        return False
    return _has_label(snapshot) and in_nav_pane(chain, index, ctx.platform, ctx.nav_pane_depth)


def _left_edge_candidate(snapshot: ElementSnapshot, ctx: WalkContext) -> bool:
    if ctx.spatial_fallback_px is None or ctx.client_x is None:
        return False
    if ctx.client_x > ctx.spatial_fallback_px:
        return False
    return 3 <= len(snapshot.visible_text) <= ctx.max_label_length


def left_edge_navigation_text(chain: Sequence[ElementSnapshot], index: int, ctx: WalkContext) -> bool:
    snapshot = chain[index]
    if not (snapshot.is_link_like or snapshot.control_name):
        return False
    return _left_edge_candidate(snapshot, ctx)


def left_edge_text(chain: Sequence[ElementSnapshot], index: int, ctx: WalkContext) -> bool:
    snapshot = chain[index]
    if snapshot.is_interactive or snapshot.is_button:
        return False
    return _left_edge_candidate(snapshot, ctx)


DEFAULT_RESOLVERS: Tuple[Tuple[str, Resolver], ...] = (
    ("expand-navigation", expand_navigation_control),
    ("navigation-pane-link", navigation_pane_link),
    ("left-edge-navigation-text", left_edge_navigation_text),
    ("left-edge-text", left_edge_text),
)


def walk_ancestors(
    chain: Sequence[ElementSnapshot],
    ctx: WalkContext,
    resolvers: Sequence[Tuple[str, Resolver]] = DEFAULT_RESOLVERS,
    max_depth: int = 10,
) -> Tuple[int, Optional[str]]:
    """
    Find the ancestor a click should be attributed to.
    
    Args:
        chain: Target element first, then its ancestors
        ctx: Shared resolver inputs
        resolvers: Ordered (name, predicate) pairs
        max_depth: Number of chain entries inspected, target included
        
    Returns:
        (index into chain, name of the resolver that matched). Index 0 and
        None mean the original target stands.
    """
    limit = min(len(chain), max_depth)
    for name, resolver in resolvers:
        for index in range(limit):
            if resolver(chain, index, ctx):
                return index, name
    return 0, None
