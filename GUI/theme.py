# Copyright (C) 2025
# Sample Buddy GUI Theme Module
# Central theming and styling for all GUI components
"""
Global theme and styling module for the Sample Buddy window.

This module provides:
- Color palette definitions, including item status and archiving step colors
- Font specifications
- Stylesheet generation for Qt widgets

Usage:
    from GUI.theme import Theme, apply_theme

    # Apply to entire application
    apply_theme(app)

    # Or get specific styles
    label.setStyleSheet(Theme.step_badge_style("current"))
"""

from __future__ import annotations
from typing import Optional
from dataclasses import dataclass
from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QFont


@dataclass
class ColorPalette:
    """Color palette for the application theme."""

    # Background colors
    background_primary: str = "#ffffff"      # Main background
    background_secondary: str = "#f8f9fa"    # Secondary/alternate background
    background_tertiary: str = "#e9ecef"     # Headers, pending steps
    background_hover: str = "#e3f2fd"        # Hover state background
    background_dark: str = "#1e1e1e"         # Printable log preview

    # Text colors
    text_primary: str = "#212529"
    text_secondary: str = "#6c757d"
    text_tertiary: str = "#adb5bd"
    text_inverse: str = "#ffffff"

    # Accent colors
    accent_primary: str = "#0078d4"
    accent_success: str = "#28a745"
    accent_warning: str = "#ffc107"
    accent_error: str = "#dc3545"

    # Border colors
    border_light: str = "#dee2e6"
    border_medium: str = "#ced4da"
    border_focus: str = "#0078d4"

    # Item status colors
    status_active: str = "#d4edda"
    status_disposed: str = "#fff3cd"
    status_deleted: str = "#f8d7da"


@dataclass
class FontSpec:
    """Font specifications for the application."""

    family_primary: str = "Segoe UI"
    family_monospace: str = "Consolas"

    size_sm: int = 10
    size_base: int = 11
    size_md: int = 12
    size_lg: int = 14
    size_scan: int = 18


class Theme:
    """
    Central theme class providing styling for all GUI components.

    All methods are class methods that can be called without instantiation.
    """

    colors = ColorPalette()
    fonts = FontSpec()

    SPACING_SM = 8
    SPACING_MD = 12
    SPACING_LG = 16

    BORDER_RADIUS_SM = 4
    BORDER_RADIUS_MD = 6

    @classmethod
    def get_font(cls, size: Optional[int] = None, bold: bool = False,
                 monospace: bool = False) -> QFont:
        """Get a QFont with theme specifications."""
        family = cls.fonts.family_monospace if monospace else cls.fonts.family_primary
        font = QFont(family, size or cls.fonts.size_base)
        if bold:
            font.setBold(True)
        return font

    # ==================== Global Application Stylesheet ====================

    @classmethod
    def application_stylesheet(cls) -> str:
        """Get the complete application stylesheet."""
        c = cls.colors
        f = cls.fonts

        return f"""
            QWidget {{
                font-family: "{f.family_primary}";
                font-size: {f.size_base}px;
                color: {c.text_primary};
                background-color: {c.background_primary};
            }}

            QMainWindow {{
                background-color: {c.background_secondary};
            }}

            QLabel {{
                background-color: transparent;
                padding: 2px;
            }}

            QPushButton {{
                background-color: {c.background_tertiary};
                border: 1px solid {c.border_medium};
                border-radius: {cls.BORDER_RADIUS_SM}px;
                padding: 6px 16px;
                min-height: 24px;
            }}

            QPushButton:hover {{
                background-color: {c.background_hover};
                border-color: {c.accent_primary};
            }}

            QPushButton:disabled {{
                background-color: {c.background_secondary};
                color: {c.text_tertiary};
                border-color: {c.border_light};
            }}

            QLineEdit, QTextEdit, QPlainTextEdit {{
                border: 1px solid {c.border_medium};
                border-radius: {cls.BORDER_RADIUS_SM}px;
                padding: 6px 10px;
                selection-background-color: {c.accent_primary};
                selection-color: {c.text_inverse};
            }}

            QLineEdit:focus, QTextEdit:focus, QPlainTextEdit:focus {{
                border-color: {c.border_focus};
            }}

            QTableWidget {{
                gridline-color: {c.border_light};
                alternate-background-color: {c.background_secondary};
            }}

            QHeaderView::section {{
                background-color: {c.background_tertiary};
                border: none;
                border-bottom: 1px solid {c.border_medium};
                padding: 4px 8px;
                font-weight: 600;
            }}

            QTabBar::tab {{
                background-color: {c.background_tertiary};
                padding: 6px 16px;
                border-top-left-radius: {cls.BORDER_RADIUS_SM}px;
                border-top-right-radius: {cls.BORDER_RADIUS_SM}px;
            }}

            QTabBar::tab:selected {{
                background-color: {c.background_primary};
                color: {c.accent_primary};
                font-weight: bold;
            }}
        """

    # ==================== Component-Specific Styles ====================

    @classmethod
    def title_label_style(cls) -> str:
        """Style for main title labels."""
        return f"""
            QLabel {{
                font-size: {cls.fonts.size_lg}px;
                font-weight: bold;
                color: {cls.colors.text_primary};
                background-color: transparent;
                padding: 4px 0;
            }}
        """

    @classmethod
    def scan_input_style(cls) -> str:
        """Large barcode entry field."""
        return f"""
            QLineEdit {{
                font-family: "{cls.fonts.family_monospace}";
                font-size: {cls.fonts.size_scan}px;
                padding: 10px 12px;
                border: 2px solid {cls.colors.accent_primary};
                border-radius: {cls.BORDER_RADIUS_MD}px;
            }}
        """

    @classmethod
    def danger_button_style(cls) -> str:
        """Style for destructive buttons (dispose, delete)."""
        return f"""
            QPushButton {{
                background-color: {cls.colors.accent_error};
                color: {cls.colors.text_inverse};
                border: none;
                border-radius: {cls.BORDER_RADIUS_SM}px;
                padding: 8px 20px;
                font-weight: bold;
            }}
            QPushButton:hover {{
                background-color: #c82333;
            }}
            QPushButton:disabled {{
                background-color: {cls.colors.border_medium};
                color: {cls.colors.text_tertiary};
            }}
        """

    @classmethod
    def log_text_style(cls) -> str:
        """Style for the printable log preview."""
        return f"""
            QPlainTextEdit {{
                background-color: {cls.colors.background_dark};
                color: #d4d4d4;
                border: 1px solid #333;
                border-radius: {cls.BORDER_RADIUS_SM}px;
                font-family: "{cls.fonts.family_monospace}";
                font-size: {cls.fonts.size_sm}px;
            }}
        """

    @classmethod
    def step_badge_style(cls, state: str) -> str:
        """Badge for an archiving step: 'completed', 'current' or 'pending'."""
        step_colors = {
            "completed": (cls.colors.text_inverse, cls.colors.accent_success),
            "current": (cls.colors.text_inverse, cls.colors.accent_primary),
            "pending": (cls.colors.text_secondary, cls.colors.background_tertiary),
        }
        fg, bg = step_colors.get(state, step_colors["pending"])

        return f"""
            QLabel {{
                background-color: {bg};
                color: {fg};
                border-radius: {cls.BORDER_RADIUS_SM}px;
                padding: 4px 12px;
                font-weight: bold;
            }}
        """


def apply_theme(app: QApplication) -> None:
    """Apply the global theme to the application.

    Args:
        app: The QApplication instance to apply the theme to.
    """
    app.setStyleSheet(Theme.application_stylesheet())
    app.setFont(Theme.get_font())


def get_status_color(status: str) -> str:
    """Get the background color for an item status.

    Args:
        status: 'active', 'disposed' or 'deleted'

    Returns:
        Hex color string for the status.
    """
    status_map = {
        "active": Theme.colors.status_active,
        "disposed": Theme.colors.status_disposed,
        "deleted": Theme.colors.status_deleted,
    }
    return status_map.get(status.lower(), Theme.colors.background_tertiary)
