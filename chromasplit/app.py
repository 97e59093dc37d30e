import customtkinter as ctk

from chromasplit.config import Settings, build_analyzer, build_pipeline
from chromasplit.controllers.app_controller import AppController
from chromasplit.ui.bottom_bar import BottomBar
from chromasplit.ui.histogram_view import HistogramView
from chromasplit.ui.image_viewer import ImageViewer
from chromasplit.ui.sidebar import Sidebar


class ChromaSplitApp(ctk.CTk):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        ctk.set_appearance_mode("dark")
        ctk.set_default_color_theme("blue")

        self.title("ChromaSplit")
        self.minsize(1000, 680)

        # root layout: viewer + histogram on the left, sidebar on the right
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)
        self.grid_rowconfigure(2, weight=0)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._histogram = HistogramView(self)
        self._histogram.grid(row=1, column=0, sticky="ew", padx=(12, 6), pady=(0, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, rowspan=2, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=2, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        self._controller = AppController(
            viewer=self._viewer,
            sidebar=self._sidebar,
            bottom=self._bottom,
            histogram=self._histogram,
            window=self,
            pipeline=build_pipeline(settings),
            analyzer=build_analyzer(settings),
        )
        self._controller.bind_events()
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    def _on_close(self) -> None:
        self._controller.shutdown()
        self.destroy()
