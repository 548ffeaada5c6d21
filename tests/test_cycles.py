from critpath.cycles import find_cycles, validate_dependencies
from critpath.models import Dependency, DependencyType


def test_two_cycle_is_reported():
    result = validate_dependencies([Dependency("A", "B"), Dependency("B", "A")])
    assert result.valid is False
    assert result.circular_dependencies == ["A -> B -> A"]


def test_acyclic_chain_is_valid():
    result = validate_dependencies([Dependency("A", "B"), Dependency("B", "C")])
    assert result.valid is True
    assert result.circular_dependencies is None


def test_empty_dependencies_are_valid():
    assert validate_dependencies([]).valid is True


def test_self_loop():
    result = validate_dependencies([Dependency("A", "A", DependencyType.START_TO_START)])
    assert result.circular_dependencies == ["A -> A"]


def test_cycle_trace_starts_at_repeated_task():
    deps = [
        Dependency("X", "A"),
        Dependency("A", "B"),
        Dependency("B", "C"),
        Dependency("C", "A"),
    ]
    assert find_cycles(deps) == [["A", "B", "C", "A"]]


def test_diamond_is_not_a_cycle():
    deps = [
        Dependency("A", "B"),
        Dependency("A", "C"),
        Dependency("B", "D"),
        Dependency("C", "D"),
    ]
    assert find_cycles(deps) == []


def test_independent_cycles_are_all_reported():
    deps = [
        Dependency("A", "B"),
        Dependency("B", "A"),
        Dependency("C", "D"),
        Dependency("D", "E"),
        Dependency("E", "C"),
    ]
    result = validate_dependencies(deps)
    assert result.valid is False
    assert result.circular_dependencies == ["A -> B -> A", "C -> D -> E -> C"]


def test_long_chain_does_not_hit_recursion_limit():
    n = 10_000
    deps = [Dependency(f"T{i}", f"T{i + 1}") for i in range(n)]
    assert validate_dependencies(deps).valid is True

    deps.append(Dependency(f"T{n}", "T0"))
    cycles = find_cycles(deps)
    assert len(cycles) == 1
    assert cycles[0][0] == cycles[0][-1] == "T0"
    assert len(cycles[0]) == n + 2
