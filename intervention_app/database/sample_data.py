"""Sample interventions used to seed development databases."""
from intervention_app.database.models import StepType
from intervention_app.schemas.schemas import ExerciseCreate, InterventionCreate, StepCreate

SAMPLE_INTERVENTIONS = [
    InterventionCreate(
        name="Stress Reduction",
        description="A series of exercises to reduce stress and promote relaxation",
        condition="high_stress_low_sleep_high_activity",
        priority=10,
        translations={
            "es": {
                "name": "Reducción de Estrés",
                "description": "Una serie de ejercicios para reducir el estrés y promover la relajación",
            },
        },
        exercises=[
            ExerciseCreate(
                name="Deep Breathing",
                description="A breathing exercise to reduce stress and promote relaxation",
                order_index=0,
                translations={"es": {"name": "Respiración Profunda"}},
                steps=[
                    StepCreate(
                        type=StepType.INFORMATION,
                        order_index=0,
                        content={
                            "title": "Breathe in for four",
                            "content": "Breathe in slowly through your nose for four seconds, "
                                       "hold for four, then breathe out for six.",
                            "acknowledgmentRequired": True,
                        },
                        translations={"es": {"content": {"title": "Inhala durante cuatro"}}},
                    ),
                    StepCreate(
                        type=StepType.QUESTION_SINGLE_CHOICE,
                        order_index=1,
                        content={
                            "question": "How do you feel after the breathing exercise?",
                            "options": [
                                {"id": "better", "text": "Calmer", "value": 1},
                                {"id": "same", "text": "About the same", "value": 0},
                                {"id": "worse", "text": "More tense", "value": -1},
                            ],
                            "required": True,
                        },
                    ),
                ],
            ),
            ExerciseCreate(
                name="Stress Reflection",
                description="A reflection exercise to identify sources of stress",
                order_index=1,
                steps=[
                    StepCreate(
                        type=StepType.TEXT_REFLECTION,
                        order_index=0,
                        content={
                            "introText": "Take a moment to notice what is weighing on you.",
                            "prompts": [
                                {"id": "source", "text": "What caused the most stress today?"},
                                {"id": "control", "text": "Which part of it can you influence?"},
                            ],
                        },
                    ),
                ],
            ),
        ],
    ),
    InterventionCreate(
        name="Sleep Improvement",
        description="Techniques to improve your sleep quality and duration",
        condition="high_stress_low_sleep_low_activity",
        priority=8,
        translations={
            "es": {
                "name": "Mejora del Sueño",
                "description": "Técnicas para mejorar la calidad y duración del sueño",
            },
        },
        exercises=[
            ExerciseCreate(
                name="Wind-down Routine",
                description="Build a short routine for the hour before bed",
                order_index=0,
                steps=[
                    StepCreate(
                        type=StepType.MEDIA,
                        order_index=0,
                        content={
                            "mediaType": "audio",
                            "url": "https://example.com/media/wind-down.mp3",
                            "caption": "A five minute guided wind-down",
                            "acknowledgmentRequired": True,
                        },
                    ),
                    StepCreate(
                        type=StepType.QUESTION_MULTIPLE_CHOICE,
                        order_index=1,
                        content={
                            "question": "Which of these will you try tonight?",
                            "options": [
                                {"id": "screens", "text": "No screens after 22:00", "value": "screens"},
                                {"id": "caffeine", "text": "No caffeine after lunch", "value": "caffeine"},
                                {"id": "reading", "text": "Read for 15 minutes", "value": "reading"},
                            ],
                            "minSelections": 1,
                            "maxSelections": 3,
                        },
                    ),
                    StepCreate(
                        type=StepType.TEXT_INPUT,
                        order_index=2,
                        content={
                            "question": "What time will you go to bed tonight?",
                            "placeholder": "e.g. 22:30",
                            "maxLength": 20,
                        },
                    ),
                ],
            ),
        ],
    ),
    InterventionCreate(
        name="Activity Promotion",
        description="Exercises to encourage more physical activity throughout the day",
        condition="low_stress_high_sleep_low_activity",
        priority=6,
        translations={
            "es": {
                "name": "Promoción de Actividad",
                "description": "Ejercicios para fomentar más actividad física durante el día",
            },
        },
        exercises=[
            ExerciseCreate(
                name="Movement Snacks",
                description="Short bursts of movement spread across the day",
                order_index=0,
                steps=[
                    StepCreate(
                        type=StepType.INFORMATION,
                        order_index=0,
                        content={
                            "content": "Three five-minute walks add up to 1500 extra steps.",
                            "acknowledgmentRequired": True,
                        },
                    ),
                ],
            ),
        ],
    ),
]
