import base64
import io

from PIL import Image, ImageDraw

CANVAS_SIZE = 200
MIN_COVERAGE = 0.03
DATA_URL_PREFIX = 'data:image/png;base64,'

PALETTE = (
    (255, 107, 107),  # red
    (255, 217, 61),   # yellow
    (255, 142, 83),   # orange
    (167, 139, 250),  # purple
    (96, 165, 250),   # blue
    (244, 114, 182),  # pink
    (74, 222, 128),   # leaf green
    (139, 111, 71),   # stem brown
)


def encode_image(image):
    buf = io.BytesIO()
    image.save(buf, format='PNG')
    return DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode('ascii')


def decode_image(image_data):
    """Inverse of encode_image; accepts a bare base64 string too."""
    if image_data.startswith('data:'):
        image_data = image_data.split(',', 1)[1]
    return Image.open(io.BytesIO(base64.b64decode(image_data))).convert('RGBA')


class FlowerDrawing:
    """Crayon canvas on a transparent background."""

    def __init__(self, size=CANVAS_SIZE):
        self.size = size
        self.color = PALETTE[0]
        self.brush_size = 10
        self.drawing = False
        self.last = None
        self.clear()

    def clear(self):
        self.image = Image.new('RGBA', (self.size, self.size), (0, 0, 0, 0))
        self.draw = ImageDraw.Draw(self.image)

    def begin_stroke(self, x, y):
        self.drawing = True
        self.last = (x, y)
        self._dab(x, y)

    def stroke_to(self, x, y):
        if not self.drawing:
            return
        fill = self.color + (255,)
        self.draw.line([self.last, (x, y)], fill=fill, width=self.brush_size)
        self._dab(x, y)
        self.last = (x, y)

    def end_stroke(self):
        self.drawing = False
        self.last = None

    def _dab(self, x, y):
        # round brush tip so strokes have no square joints
        r = self.brush_size / 2
        self.draw.ellipse([x - r, y - r, x + r, y + r], fill=self.color + (255,))

    def coverage(self):
        alpha = self.image.getchannel('A')
        painted = sum(alpha.histogram()[1:])
        return painted / (self.size * self.size)

    def submit(self, content_filter):
        """Returns (message, image_data). image_data is None when the drawing
        is refused."""
        if self.coverage() < MIN_COVERAGE:
            return "Please draw something first!", None
        if not content_filter.is_acceptable(self.image):
            return "That doesn't look like a flower. Try again!", None
        return "Beautiful flower!", encode_image(self.image)
