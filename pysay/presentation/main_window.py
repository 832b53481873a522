from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QDoubleSpinBox,
    QFileDialog,
    QHBoxLayout,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from pysay.config import SpeechConfig
from pysay.presentation.session_worker import SessionWorker


class MainWindow(QMainWindow):
    def __init__(self, worker: SessionWorker, speech: SpeechConfig):
        super().__init__()
        self.worker = worker

        self.setWindowTitle("pysay")
        self.resize(600, 400)

        self.text_edit = QLineEdit()
        self.text_edit.setPlaceholderText("Text to speak")

        self.voice_edit = QLineEdit(speech.voice or "")
        self.voice_edit.setPlaceholderText("Voice (engine default)")

        # 0 means "engine default rate".
        self.speed_box = QDoubleSpinBox()
        self.speed_box.setRange(0.0, 4.0)
        self.speed_box.setSingleStep(0.1)
        self.speed_box.setValue(speech.speed or 0.0)
        self.speed_box.setSpecialValueText("default")

        self.log_view = QTextEdit()
        self.log_view.setReadOnly(True)

        self._setup_layout()
        self._setup_menu()
        self.statusBar().showMessage("Ready")

        self.worker.log.connect(self.append_log)
        self.worker.operation_finished.connect(self.on_operation_finished)

    def _setup_layout(self) -> None:
        options = QHBoxLayout()
        options.addWidget(self.voice_edit)
        options.addWidget(self.speed_box)

        buttons = QHBoxLayout()
        for label, slot in (
            ("Speak", self.on_speak),
            ("Stop", self.worker.stop),
            ("Pause", self.worker.pause),
            ("Resume", self.worker.resume),
        ):
            button = QPushButton(label)
            button.clicked.connect(slot)
            buttons.addWidget(button)

        layout = QVBoxLayout()
        layout.addWidget(self.text_edit)
        layout.addLayout(options)
        layout.addLayout(buttons)
        layout.addWidget(self.log_view)

        central = QWidget()
        central.setLayout(layout)
        self.setCentralWidget(central)

    def _setup_menu(self) -> None:
        file_menu = self.menuBar().addMenu("File")

        self.export_action = QAction("Export to file...", self)
        self.export_action.triggered.connect(self.on_export)
        file_menu.addAction(self.export_action)

    def _voice(self) -> str | None:
        return self.voice_edit.text().strip() or None

    def _speed(self) -> float | None:
        return self.speed_box.value() or None

    def on_speak(self) -> None:
        self.statusBar().showMessage("Speaking...")
        self.worker.speak(self.text_edit.text(), self._voice(), self._speed())

    def on_export(self) -> None:
        filename, _ = QFileDialog.getSaveFileName(self, "Export speech", "speech.wav")
        if not filename:
            return
        self.statusBar().showMessage(f"Exporting to {filename}...")
        self.worker.export(self.text_edit.text(), self._voice(), self._speed(), filename)

    def on_operation_finished(self, operation: str, error: str) -> None:
        if error:
            self.statusBar().showMessage(f"{operation} failed ({error})")
        else:
            self.statusBar().showMessage(f"{operation}: done")

    def append_log(self, text: str):
        self.log_view.append(text)
