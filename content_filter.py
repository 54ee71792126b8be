FLOWER_KEYWORDS = (
    'flower', 'daisy', 'rose', 'sunflower', 'tulip', 'plant', 'petal',
    'bouquet', 'floral', 'blossom', 'bloom', 'pot', 'vase', 'garden',
)

REJECT_KEYWORDS = (
    'person', 'man', 'woman', 'face', 'body', 'nude', 'weapon',
    'gun', 'knife', 'violence', 'blood',
)


class ContentFilter:
    """Decides whether a drawing may be planted.

    `classifier` takes a PIL image and returns (label, probability) pairs,
    best first. Without a classifier every drawing is accepted, and a
    classifier that fails also means acceptance.
    """

    def __init__(self, classifier=None):
        self.classifier = classifier

    def is_acceptable(self, image):
        if self.classifier is None:
            return True
        try:
            predictions = list(self.classifier(image))
        except Exception as e:
            print("Content filter error, allowing drawing:", e)
            return True
        return self.judge(predictions)

    @staticmethod
    def judge(predictions):
        for label, probability in predictions:
            label = label.lower()
            if any(word in label for word in REJECT_KEYWORDS):
                print("Rejected due to:", label)
                return False
            if probability > 0.05 and any(word in label for word in FLOWER_KEYWORDS):
                return True
        # Unrecognised or abstract drawings are art too
        return True
