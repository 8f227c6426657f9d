import pytest

from painterly.models.transformation_result import (
    LOCAL_METHOD,
    SUCCESS_MESSAGE,
    TransformationResult,
)


def test_succeeded_record():
    result = TransformationResult.succeeded("data:image/png;base64,AAAA")

    assert result.to_dict() == {
        "success": True,
        "transformedImage": "data:image/png;base64,AAAA",
        "message": SUCCESS_MESSAGE,
        "method": LOCAL_METHOD,
    }


def test_failed_record_omits_image():
    record = TransformationResult.failed("Could not read the image").to_dict()

    assert record == {"success": False, "message": "Could not read the image", "method": LOCAL_METHOD}


def test_success_needs_an_image():
    with pytest.raises(ValueError):
        TransformationResult.succeeded("")


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        TransformationResult(transformed_image=None, success=False, method="magic")
