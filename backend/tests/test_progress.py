import pytest

from services.progress import parse_progress


@pytest.mark.parametrize(
    "chunk, expected",
    [
        ("42%", 42),
        (" 42%|████▏     | 12.3/29.25 [00:10<00:14,  1.20seconds/s]", 42),
        ("100%|██████████| 29.25/29.25 [00:24<00:00]", 100),
        ("0%|          | 0.0/29.25", 0),
        ("10%|##  | then 90%|#########|", 10),
    ],
)
def test_extracts_first_percentage(chunk, expected):
    assert parse_progress(chunk) == expected


@pytest.mark.parametrize(
    "chunk",
    [
        "",
        "Selected model is a bag of 1 models.",
        "Separated tracks will be stored in /data/output/htdemucs",
        "42 percent",
        "12.5%",
        "250%",
    ],
)
def test_noise_yields_nothing(chunk):
    assert parse_progress(chunk) is None


def test_non_text_input_does_not_raise():
    assert parse_progress(None) is None
