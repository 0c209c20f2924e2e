"""Drawing surface that records primitive calls for assertions."""

from surface import DrawSurface


class RecordingSurface(DrawSurface):
    def __init__(self):
        self.calls = []

    def clear(self):
        self.calls.append(('clear',))

    def fill_circle(self, center, radius, color):
        self.calls.append(('circle', center, radius, color))

    def radial_gradient(self, center, inner_radius, outer_radius, inner_color, outer_color):
        self.calls.append(('gradient', center, inner_radius, outer_radius, inner_color, outer_color))

    def line(self, start, end, color, width):
        self.calls.append(('line', start, end, color, width))

    def kinds(self):
        return [call[0] for call in self.calls]
