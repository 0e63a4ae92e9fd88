import json
from unittest.mock import patch

import numpy as np
import pytest

from gestkit.classifiers import ANBC
from gestkit.exceptions import (
    DatasetError,
    DimensionMismatchError,
    ModelFileError,
    ModelNotTrainedError,
    PipelineStateError,
)
from gestkit.ml.evaluation import ClassificationTestResults, RegressionTestResults
from gestkit.objects import ClassificationData, NULL_CLASS_LABEL, RegressionData
from gestkit.processing.pipeline import GestureRecognitionPipeline
from gestkit.processing.steps import DeadZone, LowPassFilter
from gestkit.regression import LinearRegression, MultidimensionalRegression
from testing_utils import CLASS_CENTRES, make_classification_data


@pytest.fixture
def classification_pipeline(classification_data):
    pipeline = GestureRecognitionPipeline()
    pipeline.set_classifier(ANBC(use_scaling=True, use_null_rejection=True, null_rejection_coeff=10.0))
    pipeline.train(classification_data)
    return pipeline


@pytest.fixture
def regression_pipeline(regression_data):
    pipeline = GestureRecognitionPipeline()
    pipeline.set_regressifier(MultidimensionalRegression(LinearRegression(), use_scaling=True))
    pipeline.train(regression_data)
    return pipeline


class TestPipelineConfig:
    """Building pre-processing steps from a config list."""

    def test_init_with_dead_zone(self):
        config = [
            {"DeadZone": {
                "lower_limit": -0.2,
                "upper_limit": 0.2,
            }},
        ]

        pipeline = GestureRecognitionPipeline(config)

        assert len(pipeline.pre_processing_modules) == 1
        assert isinstance(pipeline.pre_processing_modules[0], DeadZone)
        assert pipeline.pre_processing_modules[0].upper_limit == 0.2

    def test_init_without_config(self):
        pipeline = GestureRecognitionPipeline(config=[])
        assert len(pipeline.pre_processing_modules) == 0
        assert pipeline.model is None

    def test_init_with_unknown_step(self):
        with pytest.raises(ValueError):
            GestureRecognitionPipeline([{"UnknownStep": {"param": "value"}}])

    def test_init_with_malformed_entry(self):
        with pytest.raises(ValueError):
            GestureRecognitionPipeline([{"DeadZone": {}, "LowPassFilter": {}}])

    def test_get_processing_step_class(self):
        pipeline = GestureRecognitionPipeline(config=[])
        assert pipeline._get_processing_step_class("LowPassFilter") == LowPassFilter

    def test_get_processing_step_class_ignores_abstract_base_class(self):
        pipeline = GestureRecognitionPipeline(config=[])
        with pytest.raises(ValueError):
            pipeline._get_processing_step_class("ProcessingStep")

    def test_params_default_when_empty(self):
        pipeline = GestureRecognitionPipeline([{"LowPassFilter": None}])
        assert pipeline.pre_processing_modules[0].filter_factor == 0.1


class TestPipelineModel:

    def test_set_classifier_stores_untrained_copy(self, classification_data):
        anbc = ANBC()
        anbc.train(classification_data)
        pipeline = GestureRecognitionPipeline()
        pipeline.set_classifier(anbc)

        assert pipeline.classifier is not anbc
        assert not pipeline.classifier.trained
        assert anbc.trained
        assert pipeline.is_classifier and not pipeline.is_regressifier

    def test_set_regressifier_replaces_classifier(self):
        pipeline = GestureRecognitionPipeline()
        pipeline.set_classifier(ANBC())
        pipeline.set_regressifier(LinearRegression())
        assert pipeline.classifier is None
        assert pipeline.is_regressifier

    def test_train_without_model(self, classification_data):
        with pytest.raises(PipelineStateError):
            GestureRecognitionPipeline().train(classification_data)

    def test_train_with_wrong_data_type(self, regression_data):
        pipeline = GestureRecognitionPipeline()
        pipeline.set_classifier(ANBC())
        with pytest.raises(PipelineStateError):
            pipeline.train(regression_data)

    def test_train_with_empty_data(self):
        pipeline = GestureRecognitionPipeline()
        pipeline.set_classifier(ANBC())
        with pytest.raises(DatasetError):
            pipeline.train(ClassificationData())

    def test_predict_before_training(self):
        pipeline = GestureRecognitionPipeline()
        pipeline.set_classifier(ANBC())
        with pytest.raises(ModelNotTrainedError):
            pipeline.predict([0.0, 0.0, 0.0])


class TestClassificationPipeline:

    def test_train(self, classification_pipeline):
        assert classification_pipeline.trained
        assert classification_pipeline.num_input_dimensions == 3
        assert classification_pipeline.num_output_dimensions == 3

    def test_predict(self, classification_pipeline):
        for label, centre in CLASS_CENTRES.items():
            assert classification_pipeline.predict(centre) == label
            assert classification_pipeline.predicted_class_label == label
        assert classification_pipeline.class_likelihoods.shape == (3,)
        assert classification_pipeline.class_distances.shape == (3,)
        assert 0.0 < classification_pipeline.max_likelihood <= 1.0

    def test_predict_dimension_mismatch(self, classification_pipeline):
        with pytest.raises(DimensionMismatchError):
            classification_pipeline.predict([0.0, 0.0])

    def test_test_accuracy(self, classification_pipeline):
        test_data = make_classification_data(samples_per_class=10, seed=9)
        results = classification_pipeline.test(test_data)

        assert isinstance(results, ClassificationTestResults)
        assert 0.0 <= results.accuracy <= 1.0
        assert results.accuracy > 0.9
        assert classification_pipeline.test_accuracy == results.accuracy
        assert results.num_test_samples == 30
        # null rejection is enabled, so the null class gets the first row and column
        assert results.confusion_labels == [NULL_CLASS_LABEL, 1, 2, 3]
        assert classification_pipeline.test_confusion_matrix.shape == (4, 4)
        assert classification_pipeline.test_confusion_matrix.sum() == 30

    def test_mismatched_test_data_is_rejected_before_prediction(self, classification_pipeline):
        test_data = ClassificationData()
        test_data.add_sample(1, [0.0, 0.0])
        test_data.add_sample(2, [5.0, 5.0])

        with patch.object(classification_pipeline, "predict", wraps=classification_pipeline.predict) as mock_predict:
            with pytest.raises(DimensionMismatchError):
                classification_pipeline.test(test_data)
            mock_predict.assert_not_called()

    def test_regression_results_unavailable(self, classification_pipeline, classification_data):
        classification_pipeline.test(classification_data)
        with pytest.raises(PipelineStateError):
            _ = classification_pipeline.test_rms_error

    def test_with_pre_processing(self, classification_data):
        pipeline = GestureRecognitionPipeline([{"DeadZone": {"lower_limit": -0.1, "upper_limit": 0.1}}])
        pipeline.set_classifier(ANBC())
        pipeline.train(classification_data)
        assert pipeline.predict(CLASS_CENTRES[2]) == 2

    def test_retrain_with_different_dimensionality(self, classification_data):
        pipeline = GestureRecognitionPipeline([{"DeadZone": {"lower_limit": -0.01, "upper_limit": 0.01}}])
        pipeline.set_classifier(ANBC())
        pipeline.train(classification_data)

        two_dimensional = make_classification_data(centres={1: [0.0, 0.0], 2: [5.0, 5.0]})
        pipeline.train(two_dimensional)

        assert pipeline.num_input_dimensions == 2
        assert pipeline.predict([5.0, 5.0]) == 2

    def test_pre_processing_is_applied_to_predictions(self, classification_data):
        pipeline = GestureRecognitionPipeline()
        pipeline.add_pre_processing_module(DeadZone(-0.1, 0.1))
        pipeline.set_classifier(ANBC())
        pipeline.train(classification_data)

        step = pipeline.pre_processing_modules[0]
        with patch.object(step, "_do_process", wraps=step._do_process) as mock_process:
            pipeline.predict(CLASS_CENTRES[1])
            mock_process.assert_called_once()

    def test_save_and_load_gives_identical_predictions(self, classification_data, tmp_path):
        pipeline = GestureRecognitionPipeline([{"DeadZone": {"lower_limit": -0.1, "upper_limit": 0.1}}])
        pipeline.set_classifier(ANBC(use_scaling=True, use_null_rejection=True))
        pipeline.train(classification_data)
        path = tmp_path / "pipeline.json"
        pipeline.save_pipeline_to_file(path)

        loaded = GestureRecognitionPipeline()
        loaded.load_pipeline_from_file(path)
        assert loaded.trained and loaded.is_classifier
        assert isinstance(loaded.pre_processing_modules[0], DeadZone)
        assert loaded.num_input_dimensions == 3

        for sample in make_classification_data(samples_per_class=5, seed=21):
            assert loaded.predict(sample.sample) == pipeline.predict(sample.sample)
            np.testing.assert_allclose(loaded.class_likelihoods, pipeline.class_likelihoods)


class TestRegressionPipeline:

    def test_train(self, regression_pipeline):
        assert regression_pipeline.trained
        assert regression_pipeline.num_input_dimensions == 2
        assert regression_pipeline.num_output_dimensions == 2

    def test_predict(self, regression_pipeline):
        output = regression_pipeline.predict([0.0, 0.0])
        np.testing.assert_allclose(output, [1.0, -3.0], atol=1e-8)
        np.testing.assert_allclose(regression_pipeline.regression_data, output)

    def test_test_rms(self, regression_pipeline, regression_data):
        results = regression_pipeline.test(regression_data)
        assert isinstance(results, RegressionTestResults)
        assert results.num_test_samples == 60
        assert regression_pipeline.test_rms_error == pytest.approx(0.0, abs=1e-8)
        assert regression_pipeline.test_sse == pytest.approx(0.0, abs=1e-12)
        assert results.outputs.shape == (60, 2)

    def test_classification_results_unavailable(self, regression_pipeline, regression_data):
        regression_pipeline.test(regression_data)
        with pytest.raises(PipelineStateError):
            _ = regression_pipeline.test_accuracy

    def test_mismatched_targets(self, regression_pipeline):
        test_data = RegressionData()
        test_data.add_sample([0.0, 0.0], [1.0])
        with pytest.raises(DimensionMismatchError):
            regression_pipeline.test(test_data)

    def test_test_before_training(self, regression_data):
        pipeline = GestureRecognitionPipeline()
        pipeline.set_regressifier(LinearRegression())
        with pytest.raises(ModelNotTrainedError):
            pipeline.test(regression_data)

    def test_save_and_load_gives_identical_predictions(self, regression_pipeline, regression_data, tmp_path):
        path = tmp_path / "pipeline.json"
        regression_pipeline.save_pipeline_to_file(path)

        loaded = GestureRecognitionPipeline()
        loaded.load_pipeline_from_file(path)
        assert loaded.is_regressifier
        for sample in regression_data:
            np.testing.assert_array_equal(loaded.predict(sample.input_vector),
                                          regression_pipeline.predict(sample.input_vector))


class TestPipelineFiles:

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GestureRecognitionPipeline().load_pipeline_from_file(tmp_path / "missing.json")

    def test_load_model_file_as_pipeline(self, classification_data, tmp_path):
        anbc = ANBC()
        anbc.train(classification_data)
        path = tmp_path / "anbc.json"
        anbc.save_model_to_file(path)
        with pytest.raises(ModelFileError):
            GestureRecognitionPipeline().load_pipeline_from_file(path)

    def test_load_unknown_step(self, classification_pipeline, tmp_path):
        path = tmp_path / "pipeline.json"
        classification_pipeline.save_pipeline_to_file(path)
        document = json.loads(path.read_text())
        document["pre_processing"] = [{"NoSuchStep": {}}]
        path.write_text(json.dumps(document))
        with pytest.raises(ModelFileError):
            GestureRecognitionPipeline().load_pipeline_from_file(path)
