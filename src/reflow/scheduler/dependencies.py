"""Dependency resolution and cycle-safe topological ordering of work orders."""

from collections import defaultdict, deque

from reflow.models import Routing, WorkOrder

from .core import IssueCode, ScheduleIssue, Severity

DependencyMap = dict[str, list[str]]


def build_effective_dependencies(
    work_orders: list[WorkOrder], routings: list[Routing] | None = None
) -> DependencyMap:
    """Merge explicit dependencies with those implied by routing sequence.

    Within a routing, operation k depends on operation k-1. Both operations are
    matched by operation number against the live orders of the same
    manufacturing order; pairs with a missing side are skipped silently.

    Args:
        work_orders: Live work orders
        routings: Optional routings for the manufacturing orders

    Returns:
        Mapping of order id to its de-duplicated dependency ids, explicit ones first
    """
    dependency_map: dict[str, dict[str, None]] = {}
    by_manufacturing_order: dict[str, list[WorkOrder]] = defaultdict(list)

    for order in work_orders:
        dependency_map[order.id] = dict.fromkeys(order.depends_on_work_order_ids)
        by_manufacturing_order[order.manufacturing_order_id].append(order)

    for routing in routings or []:
        mo_orders = by_manufacturing_order.get(routing.manufacturing_order_id)
        if not mo_orders:
            continue

        operations = sorted(routing.operations, key=lambda op: op.sequence)
        for prev, curr in zip(operations, operations[1:]):
            parent = _find_by_operation(mo_orders, prev.operation_number)
            child = _find_by_operation(mo_orders, curr.operation_number)
            if parent is None or child is None or parent.id == child.id:
                continue
            dependency_map[child.id][parent.id] = None

    return {order_id: list(deps) for order_id, deps in dependency_map.items()}


def _find_by_operation(orders: list[WorkOrder], operation_number: int) -> WorkOrder | None:
    for order in orders:
        if order.operation_number == operation_number:
            return order
    return None


def topological_sort(
    work_orders: list[WorkOrder], dependency_map: DependencyMap
) -> tuple[list[WorkOrder], ScheduleIssue | None]:
    """Order work orders so every dependency precedes its dependents (Kahn's algorithm).

    Dependencies on orders outside the live set are ignored for ordering. The
    ready queue is seeded with independent orders by ascending original start
    (ties keep input order); newly ready orders join in discovery order.

    Returns:
        (ordered, None) on success, or (original list unchanged, CYCLE_DETECTED issue)
    """
    by_id = {order.id: order for order in work_orders}
    in_degree = dict.fromkeys(by_id, 0)
    children: dict[str, list[str]] = defaultdict(list)

    for order in work_orders:
        for parent_id in dependency_map.get(order.id, []):
            if parent_id not in by_id:
                continue
            in_degree[order.id] += 1
            children[parent_id].append(order.id)

    seeds = sorted(
        (order for order in work_orders if in_degree[order.id] == 0),
        key=lambda order: order.start_date,
    )
    queue: deque[str] = deque(order.id for order in seeds)
    ordered: list[WorkOrder] = []

    while queue:
        order_id = queue.popleft()
        ordered.append(by_id[order_id])

        for child_id in children.get(order_id, []):
            in_degree[child_id] -= 1
            if in_degree[child_id] == 0:
                queue.append(child_id)

    if len(ordered) != len(work_orders):
        stuck = {order_id for order_id, degree in in_degree.items() if degree > 0}
        return (list(work_orders), _cycle_issue(stuck, dependency_map))

    return (ordered, None)


def detect_cycle(
    work_orders: list[WorkOrder], dependency_map: DependencyMap
) -> ScheduleIssue | None:
    """Return a CYCLE_DETECTED issue if the dependency graph has a cycle."""
    _, issue = topological_sort(work_orders, dependency_map)
    return issue


def _cycle_issue(stuck_ids: set[str], dependency_map: DependencyMap) -> ScheduleIssue:
    path = _find_cycle_path(stuck_ids, dependency_map)
    message = "Circular dependency detected in work orders"
    if path:
        message += ": " + " -> ".join(path)
    return ScheduleIssue(code=IssueCode.CYCLE_DETECTED, severity=Severity.ERROR, message=message)


def _find_cycle_path(stuck_ids: set[str], dependency_map: DependencyMap) -> list[str]:
    """Find one concrete cycle among orders that Kahn's algorithm could not release.

    Every stuck order has at least one stuck dependency, so walking dependencies
    from any stuck order must revisit a node.
    """
    if not stuck_ids:
        return []

    current = min(stuck_ids)
    path: list[str] = []
    position: dict[str, int] = {}

    while current not in position:
        position[current] = len(path)
        path.append(current)
        current = next(dep for dep in dependency_map.get(current, []) if dep in stuck_ids)

    cycle = path[position[current] :]
    # Present in dependency order: each order is followed by an order that depends on it
    cycle.reverse()
    return [*cycle, cycle[0]]
