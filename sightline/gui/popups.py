import logging

from kivy.clock import Clock
from kivy.metrics import dp
from kivy.properties import NumericProperty, StringProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.popup import Popup

from ..voice.engine import Severity

logger = logging.getLogger(__name__)

SEVERITY_COLOURS = {
    Severity.INFO: (0.13, 0.55, 0.33, 1),
    Severity.ERROR: (0.8, 0.15, 0.15, 1),
}


class BasePopup(Popup):
    """
    Base class for popups with common font behaviour.

    - font_size comes from the running app.
    - on_open applies font size to non-button text.
    """
    font_size = NumericProperty(18)

    def on_open(self):
        from kivy.app import App

        app = App.get_running_app()
        if app:
            self.font_size = getattr(app, "font_size", 18)

        for child in self.walk():
            if (
                hasattr(child, 'font_size')
                and hasattr(child, 'text')
                and not isinstance(child, Button)
            ):
                child.font_size = dp(self.font_size)


class NotificationPopup(BasePopup):
    """
    Toast-style message, separate from spoken feedback.
    Dismisses itself after `seconds`.
    """
    description = StringProperty("")

    def __init__(self, title, description, severity=Severity.INFO, seconds=3.0, **kwargs):
        super().__init__(
            title=title,
            size_hint=(0.85, None),
            height=dp(180),
            auto_dismiss=True,
            **kwargs
        )
        self.description = description
        self.separator_color = SEVERITY_COLOURS.get(severity, SEVERITY_COLOURS[Severity.INFO])
        self.content = Label(text=description, halign='center', valign='middle')
        self.content.bind(size=lambda label, size: setattr(label, 'text_size', size))
        self._timeout = seconds

    def on_open(self):
        super().on_open()
        if self._timeout:
            Clock.schedule_once(lambda dt: self.dismiss(), self._timeout)


class ListeningPopup(BasePopup):
    """Popup indicating listening state; tapping Stop cancels listening."""

    def __init__(self, dismiss_callback, **kwargs):
        super().__init__(title="Listening...", size_hint=(0.7, None), height=dp(200), **kwargs)
        self.dismiss_callback = dismiss_callback
        self._closing = False

        layout = BoxLayout(orientation='vertical', padding=dp(10), spacing=dp(10))
        layout.add_widget(Label(text="Say a command"))
        stop = Button(text="Stop", size_hint_y=None, height=dp(48))
        stop.bind(on_release=lambda _btn: self.dismiss())
        layout.add_widget(stop)
        self.content = layout

    def close_quietly(self):
        """Dismiss without invoking the cancel callback."""
        self._closing = True
        self.dismiss()

    def on_dismiss(self):
        if self.dismiss_callback and not self._closing:
            self.dismiss_callback()
