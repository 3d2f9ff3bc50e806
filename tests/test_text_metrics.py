from text_metrics import max_text_width, measure_text_width, resolve_font_family


def test_empty_text_has_no_width():
    assert measure_text_width("", 14) == 0.0


def test_width_grows_with_text_and_size():
    short = measure_text_width("Plan", 14)
    longer = measure_text_width("Plan the rollout", 14)
    bigger = measure_text_width("Plan", 28)
    assert 0 < short < longer
    assert bigger == short * 2 or abs(bigger - short * 2) < 1.0


def test_measurement_is_deterministic():
    assert measure_text_width("Stakeholder interviews", 13) == measure_text_width("Stakeholder interviews", 13)


def test_letter_spacing_adds_width():
    assert measure_text_width("abc", 10, letter_spacing=0.1) > measure_text_width("abc", 10)


def test_font_fallback_is_renderable():
    assert resolve_font_family("No Such Font Family") in ("Arial", "DejaVu Sans")


def test_max_text_width_with_custom_measure(measure):
    assert max_text_width(["a", "abcd", "ab"], 10, measure) == 20.0
    assert max_text_width([], 10, measure) == 0.0
