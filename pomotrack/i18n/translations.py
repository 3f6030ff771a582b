# -*- coding: utf-8 -*-
"""
Translation dictionaries for German and English.

This module contains all user-facing notification strings of Pomotrack.
"""

TRANSLATIONS = {
    "en": {
        # Application
        "app.name": "Pomotrack",

        # Phase names
        "phase.pomodoro": "Pomodoro",
        "phase.shortBreak": "Short Break",
        "phase.longBreak": "Long Break",

        # Phase expiry notifications
        "notify.pomodoro.title": "Work Session Complete!",
        "notify.pomodoro.body": "Great job! Take a break to recharge.",
        "notify.shortBreak.title": "Short Break Complete",
        "notify.shortBreak.body": "Time to get back to work!",
        "notify.longBreak.title": "Long Break Complete",
        "notify.longBreak.body": "Ready for a new work session?",
        "notify.next_phase": "Next: {phase} ({minutes} min)",

        # Task progress
        "notify.task_completed.title": "Task Completed",
        "notify.task_completed.body": "\"{title}\" reached its estimated time.",

        # Focus mode
        "notify.focus.title": "Focus Mode",
        "notify.focus.body": "Focus session complete! Great job staying focused.",
    },
    "de": {
        # Application
        "app.name": "Pomotrack",

        # Phase names
        "phase.pomodoro": "Pomodoro",
        "phase.shortBreak": "Kurze Pause",
        "phase.longBreak": "Lange Pause",

        # Phase expiry notifications
        "notify.pomodoro.title": "Arbeitsphase abgeschlossen!",
        "notify.pomodoro.body": "Gut gemacht! Mach eine Pause und tank neue Energie.",
        "notify.shortBreak.title": "Kurze Pause vorbei",
        "notify.shortBreak.body": "Zeit, wieder an die Arbeit zu gehen!",
        "notify.longBreak.title": "Lange Pause vorbei",
        "notify.longBreak.body": "Bereit für eine neue Arbeitsphase?",
        "notify.next_phase": "Als Nächstes: {phase} ({minutes} Min.)",

        # Task progress
        "notify.task_completed.title": "Aufgabe erledigt",
        "notify.task_completed.body": "\"{title}\" hat die geschätzte Zeit erreicht.",

        # Focus mode
        "notify.focus.title": "Fokusmodus",
        "notify.focus.body": "Fokussitzung beendet! Toll, dass du konzentriert geblieben bist.",
    },
}
