import numpy as np
import pytest

from gestkit.exceptions import DimensionMismatchError
from gestkit.interfaces import ProcessingStep
from gestkit.processing.steps import DeadZone, LowPassFilter, MovingAverageFilter


class TestProcessingStep:

    def test_process_calls_do_process(self):
        class Doubler(ProcessingStep):
            def _do_process(self, x):
                return 2 * x

            def get_params(self):
                return {}

        step = Doubler()
        np.testing.assert_array_equal(step.process([1.0, 2.0]), [2.0, 4.0])
        assert step.num_dimensions == 2
        assert step.to_config() == {"Doubler": {}}

    def test_dimension_is_fixed_by_first_vector(self):
        step = DeadZone()
        step.process([0.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            step.process([0.0, 0.0, 0.0])

    def test_declared_dimensions(self):
        with pytest.raises(DimensionMismatchError):
            LowPassFilter(num_dimensions=3).process([1.0])

    def test_reset_forgets_learned_dimensions(self):
        step = MovingAverageFilter(filter_size=2)
        step.process([1.0, 2.0, 3.0])
        step.reset()
        assert step.num_dimensions is None
        np.testing.assert_allclose(step.process([4.0, 5.0]), [4.0, 5.0])

    def test_reset_keeps_declared_dimensions(self):
        step = DeadZone(num_dimensions=2)
        step.reset()
        assert step.num_dimensions == 2
        with pytest.raises(DimensionMismatchError):
            step.process([1.0, 2.0, 3.0])


class TestDeadZone:

    def test_values_inside_the_band_are_zeroed(self):
        step = DeadZone(lower_limit=-0.5, upper_limit=0.5)
        np.testing.assert_allclose(step.process([-0.2, 0.0, 0.5]), [0.0, 0.0, 0.0])

    def test_values_outside_are_shifted(self):
        step = DeadZone(lower_limit=-0.5, upper_limit=0.5)
        np.testing.assert_allclose(step.process([2.0, -1.5]), [1.5, -1.0])

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            DeadZone(lower_limit=1.0, upper_limit=-1.0)

    def test_to_config(self):
        assert DeadZone(-0.2, 0.3).to_config() == {"DeadZone": {"lower_limit": -0.2, "upper_limit": 0.3}}


class TestMovingAverageFilter:

    def test_average_over_window(self):
        step = MovingAverageFilter(filter_size=2)
        np.testing.assert_allclose(step.process([2.0]), [2.0])
        np.testing.assert_allclose(step.process([4.0]), [3.0])
        np.testing.assert_allclose(step.process([8.0]), [6.0])

    def test_reset(self):
        step = MovingAverageFilter(filter_size=3)
        step.process([10.0])
        step.reset()
        np.testing.assert_allclose(step.process([1.0]), [1.0])

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            MovingAverageFilter(filter_size=0)


class TestLowPassFilter:

    def test_first_vector_passes_through(self):
        step = LowPassFilter(filter_factor=0.5)
        np.testing.assert_allclose(step.process([4.0, -2.0]), [4.0, -2.0])

    def test_smoothing(self):
        step = LowPassFilter(filter_factor=0.5)
        step.process([0.0])
        np.testing.assert_allclose(step.process([4.0]), [2.0])
        np.testing.assert_allclose(step.process([4.0]), [3.0])

    def test_input_is_not_modified(self):
        step = LowPassFilter(filter_factor=0.5)
        x = np.array([1.0, 2.0])
        step.process(x)
        step.process(np.zeros(2))
        np.testing.assert_array_equal(x, [1.0, 2.0])

    @pytest.mark.parametrize("factor", [0.0, 1.5])
    def test_invalid_factor(self, factor):
        with pytest.raises(ValueError):
            LowPassFilter(filter_factor=factor)
