"""
QR Drop - Receiver UI

Tkinter window for receiving files through the camera.

The large glyph in the middle is the readiness indicator: it flips every
time a chunk is accepted, and the person at the sender advances to the
next code when they see it change.
"""

import os
import subprocess
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from pathlib import Path
from typing import Callable, List, Optional

from shared import (
    PROFILES, DEFAULT_PROFILE, DEFAULT_DEVICE_INDEX,
    GLYPH_READY, GLYPH_WAITING,
    FileRecord,
)
from .session import SessionState


def format_duration(seconds: float) -> str:
    """Format duration as human-readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}m {secs}s"


def format_size(size: int) -> str:
    """Format file size as human-readable string."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


STATE_DISPLAY = {
    SessionState.IDLE: ("Idle", "gray"),
    SessionState.SCANNING: ("Scanning", "green"),
    SessionState.COMPLETED: ("Completed", "blue"),
    SessionState.ERROR: ("Error", "red"),
}


class ReceiverUI:
    """
    Tkinter UI for the QR Drop receiver.

    Provides:
    - Camera and profile selection
    - Readiness indicator
    - Progress display
    - Received files list with save
    """

    def __init__(self):
        self.root = tk.Tk()
        self.root.title("QR Drop - Receiver")
        self.root.geometry("620x640")
        self.root.minsize(520, 560)

        # State
        self.output_dir = str(Path.home() / "Downloads")

        # Callbacks
        self.on_start: Optional[Callable[[dict], None]] = None
        self.on_stop: Optional[Callable[[], None]] = None
        self.on_reset: Optional[Callable[[], None]] = None
        self.on_save: Optional[Callable[[str], None]] = None
        self.on_close: Optional[Callable[[], None]] = None

        # Variables
        self.device_var = tk.IntVar(value=DEFAULT_DEVICE_INDEX)
        self.profile_var = tk.StringVar(value=DEFAULT_PROFILE.name)
        self.distinct_end_var = tk.BooleanVar(value=False)

        self._create_widgets()
        self.root.protocol("WM_DELETE_WINDOW", self._on_close_clicked)

    def _create_widgets(self):
        """Create all UI widgets."""
        main_frame = ttk.Frame(self.root, padding="10")
        main_frame.pack(fill=tk.BOTH, expand=True)

        # Settings Section
        settings_frame = ttk.LabelFrame(main_frame, text="Settings", padding="5")
        settings_frame.pack(fill=tk.X, pady=(0, 10))

        device_row = ttk.Frame(settings_frame)
        device_row.pack(fill=tk.X, pady=2)
        ttk.Label(device_row, text="Camera:").pack(side=tk.LEFT)
        ttk.Spinbox(
            device_row, from_=0, to=9, width=4, textvariable=self.device_var
        ).pack(side=tk.LEFT, padx=5)
        ttk.Checkbutton(
            device_row, text="Sender uses distinct end marker",
            variable=self.distinct_end_var
        ).pack(side=tk.LEFT, padx=10)

        profile_row = ttk.Frame(settings_frame)
        profile_row.pack(fill=tk.X, pady=2)
        ttk.Label(profile_row, text="Profile:").pack(side=tk.LEFT)
        for name in PROFILES:
            ttk.Radiobutton(
                profile_row, text=name.capitalize(), value=name,
                variable=self.profile_var
            ).pack(side=tk.LEFT, padx=5)

        output_row = ttk.Frame(settings_frame)
        output_row.pack(fill=tk.X, pady=2)
        ttk.Label(output_row, text="Save to:").pack(side=tk.LEFT)
        self.output_label = ttk.Label(output_row, text=self.output_dir, foreground="blue")
        self.output_label.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=5)
        ttk.Button(output_row, text="Browse...", command=self._browse_output).pack(side=tk.RIGHT)

        # Indicator Section
        indicator_frame = ttk.LabelFrame(main_frame, text="Indicator", padding="5")
        indicator_frame.pack(fill=tk.X, pady=(0, 10))

        self.glyph_label = tk.Label(
            indicator_frame, text=GLYPH_WAITING, font=('TkDefaultFont', 96)
        )
        self.glyph_label.pack()
        ttk.Label(
            indicator_frame, text="Advance the sender each time this symbol changes",
            foreground="gray"
        ).pack()

        # Progress Section
        progress_frame = ttk.LabelFrame(main_frame, text="Progress", padding="5")
        progress_frame.pack(fill=tk.X, pady=(0, 10))

        self.state_label = ttk.Label(progress_frame, text="State: Idle", foreground="gray")
        self.state_label.pack(fill=tk.X)
        self.stats_label = ttk.Label(progress_frame, text="No chunks received")
        self.stats_label.pack(fill=tk.X)

        # Files Section
        files_frame = ttk.LabelFrame(main_frame, text="Received Files", padding="5")
        files_frame.pack(fill=tk.BOTH, expand=True, pady=(0, 10))

        columns = ('filename', 'size', 'status')
        self.files_tree = ttk.Treeview(files_frame, columns=columns, show='headings', height=5)
        self.files_tree.heading('filename', text='Filename')
        self.files_tree.heading('size', text='Size')
        self.files_tree.heading('status', text='Status')
        self.files_tree.column('filename', width=280)
        self.files_tree.column('size', width=80)
        self.files_tree.column('status', width=140)
        self.files_tree.pack(fill=tk.BOTH, expand=True)

        # Control Buttons
        control_frame = ttk.Frame(main_frame)
        control_frame.pack(fill=tk.X)

        self.start_btn = ttk.Button(control_frame, text="Start", command=self._on_start_clicked)
        self.start_btn.pack(side=tk.LEFT, padx=5)

        self.stop_btn = ttk.Button(
            control_frame, text="Stop", command=self._on_stop_clicked, state=tk.DISABLED
        )
        self.stop_btn.pack(side=tk.LEFT, padx=5)

        ttk.Button(control_frame, text="Reset", command=self._on_reset_clicked).pack(side=tk.LEFT, padx=5)

        self.save_btn = ttk.Button(
            control_frame, text="Save Files", command=self._on_save_clicked, state=tk.DISABLED
        )
        self.save_btn.pack(side=tk.LEFT, padx=5)

        ttk.Button(
            control_frame, text="Open Folder", command=self._open_output_folder
        ).pack(side=tk.RIGHT, padx=5)

    def _browse_output(self):
        """Browse for output directory."""
        directory = filedialog.askdirectory(
            title="Select output directory",
            initialdir=self.output_dir
        )
        if directory:
            self.output_dir = directory
            display = directory
            if len(display) > 50:
                display = "..." + display[-47:]
            self.output_label.config(text=display)

    def _on_start_clicked(self):
        if self.on_start:
            self.on_start(self.get_settings())

    def _on_stop_clicked(self):
        if self.on_stop:
            self.on_stop()

    def _on_reset_clicked(self):
        if messagebox.askyesno("Confirm Reset", "Discard everything received so far?"):
            if self.on_reset:
                self.on_reset()

    def _on_save_clicked(self):
        if self.on_save:
            self.on_save(self.output_dir)

    def _on_close_clicked(self):
        if self.on_close:
            self.on_close()
        self.close()

    def _open_output_folder(self):
        """Open output folder in file explorer."""
        if os.path.exists(self.output_dir):
            if os.name == 'nt':
                subprocess.Popen(['explorer', self.output_dir])
            else:
                subprocess.Popen(['xdg-open', self.output_dir])

    def get_settings(self) -> dict:
        """Get current settings."""
        return {
            'device_index': self.device_var.get(),
            'profile': PROFILES.get(self.profile_var.get(), DEFAULT_PROFILE),
            'distinct_end': self.distinct_end_var.get(),
            'output_dir': self.output_dir,
        }

    def show_ready(self, ready: bool, glyph: str):
        """Render the readiness glyph."""
        self.glyph_label.config(
            text=glyph, foreground="green" if glyph == GLYPH_READY else "black"
        )

    def update_progress(self, progress: dict):
        """Update state and statistics."""
        state = progress['state']
        text, color = STATE_DISPLAY.get(state, ("Unknown", "gray"))
        if progress.get('error'):
            text = f"{text} - {progress['error']}"
        self.state_label.config(text=f"State: {text}", foreground=color)

        self.stats_label.config(
            text=f"Chunks: {progress['chunks_received']} | "
                 f"Chars: {progress['chars_received']:,} | "
                 f"Repeats ignored: {progress['duplicates']} | "
                 f"Time: {format_duration(progress['elapsed'])}"
        )

        scanning = state is SessionState.SCANNING
        self.start_btn.config(state=tk.DISABLED if scanning else tk.NORMAL)
        self.stop_btn.config(state=tk.NORMAL if scanning else tk.DISABLED)

    def show_files(self, records: List[FileRecord]):
        """Replace the file list."""
        for item in self.files_tree.get_children():
            self.files_tree.delete(item)

        for record in records:
            status = "Ready" if record.exported else f"Failed: {record.error or 'not exported'}"
            self.files_tree.insert(
                '', tk.END, values=(record.name, format_size(record.size), status)
            )

        any_exported = any(r.exported for r in records)
        self.save_btn.config(state=tk.NORMAL if any_exported else tk.DISABLED)

    def show_message(self, title: str, message: str, error: bool = False):
        if error:
            messagebox.showerror(title, message)
        else:
            messagebox.showinfo(title, message)

    def run(self):
        """Start the UI main loop."""
        self.root.mainloop()

    def close(self):
        """Close the UI."""
        self.root.destroy()
