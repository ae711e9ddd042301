"""Tests for cost models and option selection."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import Direction
from nadir.benchmark.parameter_space import ParameterSpace
from nadir.benchmark.results_store import MeasurementTable, load_table
from nadir.errors import EmptyTable, IncompleteTable, InvalidQuery, SelectionError, UnknownOption
from nadir.selection.cost_model import LinearFit, fit_cost_model, numeric_features
from nadir.selection.selector import StrategySelector, choose, selector_for


class TestCrossover:
    """Quadratic vs linearithmic options crossing near size 64."""

    def test_small_inputs_choose_quadratic(self, crossover_table):
        assert choose(crossover_table, (10,)) == "n2"
        assert choose(crossover_table, {"size": 2}) == "n2"

    def test_large_inputs_choose_linearithmic(self, crossover_table):
        assert choose(crossover_table, (100000,)) == "nlogn"
        assert choose(crossover_table, {"size": 500}) == "nlogn"

    def test_predictions_follow_measurements(self, crossover_table):
        selector = StrategySelector(crossover_table)
        assert selector.predict("n2", (1000,)) == pytest.approx(1e-3, rel=1e-6)
        assert selector.predict("nlogn", (100000,)) == pytest.approx(
            crossover_table.rows_for("nlogn")[-1].duration * 100 * (11.5129 / 6.9078), rel=1e-3
        )

    def test_choose_is_deterministic(self, crossover_table):
        selector = StrategySelector(crossover_table)
        answers = {selector.choose((64,)) for _ in range(20)}
        assert len(answers) == 1

    def test_ranking_orders_fastest_first(self, crossover_table):
        ranking = StrategySelector(crossover_table).ranking((100000,))
        assert [identifier for identifier, _ in ranking] == ["nlogn", "n2"]
        assert ranking[0][1] < ranking[1][1]


class TestTieBreak:
    def test_identical_durations_choose_first_registered(self, size_space):
        records = []
        for identifier in ("zeta", "alpha"):
            for (size,) in size_space.iter_grid():
                records.append((identifier, size, 1e-6 * size * size))
        table = MeasurementTable.from_records(tuple(size_space), records)
        selector = StrategySelector(table)

        for query in [(1,), (3,), (50,), (100000,)]:
            assert selector.choose(query) == "zeta"

    def test_zero_predictions_choose_first_registered(self, size_space):
        records = [(identifier, size, 0.0) for identifier in ("b", "a") for (size,) in size_space.iter_grid()]
        table = MeasurementTable.from_records(tuple(size_space), records)

        assert StrategySelector(table).choose((2,)) == "b"


class TestEnumerated:
    def test_sub_model_per_choice(self, mixed_table):
        selector = StrategySelector(mixed_table)

        assert selector.choose((100, Direction.ASC)) == "a"
        assert selector.choose((100, Direction.DESC)) == "b"
        assert selector.choose({"size": 100, "direction": "DESC"}) == "b"

    def test_loaded_labels_accept_enum_members(self, mixed_table, tmp_path):
        loaded = load_table(mixed_table.export(tmp_path / "bench.json"))

        assert choose(loaded, (1000, Direction.ASC)) == "a"
        assert choose(loaded, (1000, Direction.DESC)) == "b"

    def test_missing_combination_falls_back_to_pooled(self, mixed_space):
        records = [("a", size, Direction.ASC, 1e-6 * size) for size in (10, 100, 1000)]
        table = MeasurementTable.from_records(tuple(mixed_space), records)
        model = fit_cost_model("a", table.parameters, table.rows_for("a"))

        assert set(model.by_category) == {(0,)}
        assert model.predict((100, Direction.DESC)) == pytest.approx(model.predict((100, Direction.ASC)))


class TestErrors:
    def test_empty_table(self, size_space):
        table = MeasurementTable(tuple(size_space)).seal()
        with pytest.raises(EmptyTable):
            choose(table, (10,))
        with pytest.raises(SelectionError):
            StrategySelector(table).predict("a", (10,))

    def test_unknown_option(self, crossover_table):
        with pytest.raises(UnknownOption, match="quick"):
            StrategySelector(crossover_table).predict("quick", (10,))

    def test_unsealed_table(self, size_space):
        table = MeasurementTable(tuple(size_space))
        table.record("a", (1,), 0.1)
        with pytest.raises(IncompleteTable):
            StrategySelector(table).choose((1,))

    @pytest.mark.parametrize("query", [(1, 2), {"depth": 3}, ("ten",)])
    def test_invalid_numeric_query(self, crossover_table, query):
        with pytest.raises(InvalidQuery):
            choose(crossover_table, query)

    def test_invalid_enumerated_query(self, mixed_table):
        with pytest.raises(InvalidQuery, match="not permitted"):
            choose(mixed_table, (10, "SIDEWAYS"))


class TestCaching:
    def test_models_fit_once(self, crossover_table):
        selector = StrategySelector(crossover_table)
        assert selector.models() is selector.models()
        assert selector.options() == ["n2", "nlogn"]

    def test_shared_selector_per_table(self, crossover_table, mixed_table):
        assert selector_for(crossover_table) is selector_for(crossover_table)
        assert selector_for(crossover_table) is not selector_for(mixed_table)

    def test_concurrent_first_use(self, crossover_table):
        selector = StrategySelector(crossover_table)
        queries = [(size,) for size in (5, 10, 1000, 100000)] * 25

        with ThreadPoolExecutor(max_workers=8) as pool:
            answers = list(pool.map(selector.choose, queries))

        assert answers == [selector.choose(query) for query in queries]
        assert answers[:4] == ["n2", "n2", "nlogn", "nlogn"]


class TestLinearFit:
    def test_features(self):
        assert numeric_features([]) == [1.0]
        assert numeric_features([0.0]) == [1.0, 0.0, 0.0, 0.0]
        assert numeric_features([1.0]) == [1.0, 1.0, 0.0, 1.0]

    def test_exact_quadratic(self):
        sizes = [1, 2, 5, 10, 50, 100]
        fit = LinearFit.fit([numeric_features([s]) for s in sizes], [3.0 * s * s + 2.0 for s in sizes])

        assert fit.rows == 6
        assert fit.predict(numeric_features([20.0])) == pytest.approx(1202.0, rel=1e-6)

    def test_no_parameters_predicts_mean(self):
        table = MeasurementTable.from_records((), [("only", 0.25)])
        assert StrategySelector(table).predict("only", ()) == pytest.approx(0.25)

    def test_single_slot_space_without_rows_for_option(self):
        space = ParameterSpace()
        space.add_parameter("size", int, [1])
        with pytest.raises(ValueError):
            fit_cost_model("a", tuple(space), [])
