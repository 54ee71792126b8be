import glfw
import imgui
from imgui.integrations.glfw import GlfwRenderer
import OpenGL.GL as gl
import math

GRASS_CLEAR = (0.42, 0.75, 0.36)


class GUI:
    """glfw window with an imgui layer on top.

    The GL projection is set up in window pixels with the origin at the
    top-left corner, so camera.world_to_screen() output can be drawn as is.
    """

    def __init__(self, width, height, title):
        self.width = width
        self.height = height
        self.on_resize = None  # hook: fn(width, height)
        self.window = self.open_window(width, height, title)
        self.impl = GlfwRenderer(self.window)

    def open_window(self, width, height, title):
        if not glfw.init():
            print("Failed to initialize GLFW")
            exit(1)
        glfw.window_hint(glfw.SAMPLES, 4)
        window = glfw.create_window(width, height, title, None, None)
        if not window:
            print("Failed to create GLFW window")
            glfw.terminate()
            exit(1)
        glfw.make_context_current(window)
        glfw.set_framebuffer_size_callback(window, self.resized)
        imgui.create_context()
        return window

    def resized(self, window, width, height):
        if width == 0 or height == 0:  # minimised
            return
        self.width, self.height = width, height
        gl.glViewport(0, 0, width, height)
        if self.on_resize:
            self.on_resize(width, height)

    def should_close(self):
        return glfw.window_should_close(self.window)

    def poll_events(self):
        glfw.poll_events()
        self.impl.process_inputs()

    def begin_frame(self):
        imgui.new_frame()
        gl.glClearColor(*GRASS_CLEAR, 1)
        gl.glClear(gl.GL_COLOR_BUFFER_BIT)

        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glLoadIdentity()
        gl.glOrtho(0, self.width, self.height, 0, -1, 1)
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glLoadIdentity()
        gl.glEnable(gl.GL_BLEND)
        gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)

    def end_frame(self):
        imgui.render()
        self.impl.render(imgui.get_draw_data())
        glfw.swap_buffers(self.window)

    def shutdown(self):
        self.impl.shutdown()
        glfw.terminate()

    # ---- input ----

    def is_key_down(self, *keys):
        return any(glfw.get_key(self.window, k) == glfw.PRESS for k in keys)

    def mouse_pressed(self):
        return glfw.get_mouse_button(self.window, glfw.MOUSE_BUTTON_LEFT) == glfw.PRESS

    def cursor_pos(self):
        return glfw.get_cursor_pos(self.window)

    @staticmethod
    def ui_wants_mouse():
        return imgui.get_io().want_capture_mouse

    @staticmethod
    def ui_wants_keyboard():
        return imgui.get_io().want_capture_keyboard

    # ---- textures ----

    def upload_image(self, img, tex_id=None):
        """Copy a PIL image into a GL texture (a new one unless tex_id is
        given) and return its id."""
        img = img.convert("RGBA")
        if tex_id is None:
            tex_id = gl.glGenTextures(1)
        gl.glBindTexture(gl.GL_TEXTURE_2D, tex_id)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
        gl.glTexImage2D(gl.GL_TEXTURE_2D, 0, gl.GL_RGBA, img.width, img.height, 0,
                        gl.GL_RGBA, gl.GL_UNSIGNED_BYTE, img.tobytes())
        return tex_id

    @staticmethod
    def free_texture(tex_id):
        if tex_id:
            gl.glDeleteTextures([tex_id])

    # ---- primitives, in window pixels ----

    def draw_image(self, tex, cx, cy, w, h):
        """Texture centred on (cx, cy)."""
        left, top = cx - w / 2, cy - h / 2
        gl.glEnable(gl.GL_TEXTURE_2D)
        gl.glBindTexture(gl.GL_TEXTURE_2D, tex)
        gl.glColor4f(1, 1, 1, 1)
        gl.glBegin(gl.GL_QUADS)
        for u, v in ((0, 0), (1, 0), (1, 1), (0, 1)):
            gl.glTexCoord2f(u, v)
            gl.glVertex2f(left + u * w, top + v * h)
        gl.glEnd()
        gl.glDisable(gl.GL_TEXTURE_2D)

    def fill_rect(self, x, y, w, h, color):
        gl.glColor3f(*color)
        gl.glRectf(x, y, x + w, y + h)

    def fill_ellipse(self, cx, cy, rx, ry, color, segments=24):
        gl.glColor3f(*color)
        gl.glBegin(gl.GL_TRIANGLE_FAN)
        gl.glVertex2f(cx, cy)
        for i in range(segments + 1):
            a = 2 * math.pi * i / segments
            gl.glVertex2f(cx + rx * math.cos(a), cy + ry * math.sin(a))
        gl.glEnd()

    def fill_circle(self, cx, cy, r, color):
        self.fill_ellipse(cx, cy, r, r, color)

    def stroke_circle(self, cx, cy, r, color, width=2.0):
        gl.glColor3f(*color)
        gl.glLineWidth(width)
        gl.glBegin(gl.GL_LINE_LOOP)
        for i in range(64):
            a = 2 * math.pi * i / 64
            gl.glVertex2f(cx + r * math.cos(a), cy + r * math.sin(a))
        gl.glEnd()

    @staticmethod
    def label(draw_list, cx, y, text, color=0xFFFFFFFF):
        """Text centred horizontally on cx, drawn into an imgui draw list."""
        text_width = imgui.calc_text_size(text).x
        draw_list.add_text(cx - text_width / 2, y - 10, color, text)
