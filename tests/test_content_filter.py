from PIL import Image

from content_filter import ContentFilter


def blank():
    return Image.new('RGBA', (8, 8))


def test_no_classifier_accepts_everything():
    assert ContentFilter().is_acceptable(blank())


def test_flower_label_is_accepted():
    f = ContentFilter(lambda img: [('daisy', 0.6), ('knife', 0.01)])
    assert f.is_acceptable(blank())


def test_rejected_label_wins_when_ranked_first():
    f = ContentFilter(lambda img: [('kitchen knife', 0.4), ('rose', 0.3)])
    assert not f.is_acceptable(blank())


def test_weak_flower_guess_does_not_shield_later_rejections():
    assert not ContentFilter.judge([('pot', 0.01), ('Gun', 0.2)])


def test_abstract_drawings_pass():
    assert ContentFilter.judge([('jigsaw puzzle', 0.3), ('shower curtain', 0.1)])
    assert ContentFilter.judge([])


def test_failing_classifier_fails_open():
    def broken(img):
        raise RuntimeError("model not loaded")
    assert ContentFilter(broken).is_acceptable(blank())
