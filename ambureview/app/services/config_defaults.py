"""
Default values written to the configuration store on first startup.
"""

STORAGE_LOCATIONS_KEY = "storage_locations"
MECHANICAL_REVIEW_ITEMS_KEY = "mechanical_review_items"
NOTIFICATION_EMAIL_KEY = "notification_email"

DEFAULT_STORAGE_LOCATIONS = [
    "Mochila Principal (Rojo)",
    "Mochila Vía Aérea (Azul)",
    "Mochila Circulatorio (Amarillo)",
    "Cajón Lateral Superior Izq.",
    "Cajón Lateral Inferior Izq.",
    "Cajón Lateral Superior Der.",
    "Cajón Lateral Inferior Der.",
    "Bolsillos Puerta Trasera",
    "Compartimento Techo Cabina",
    "Debajo Asiento Acompañante",
    "Sin Ubicación Específica",
]

DEFAULT_MECHANICAL_REVIEW_ITEMS = [
    {"name": "Pastillas de Freno (Delanteras)", "category": "Frenos"},
    {"name": "Pastillas de Freno (Traseras)", "category": "Frenos"},
    {"name": "Discos de Freno (Delanteros)", "category": "Frenos"},
    {"name": "Discos de Freno (Traseros)", "category": "Frenos"},
    {"name": "Líquido de Frenos (Nivel y Estado)", "category": "Frenos"},
    {"name": "Freno de Estacionamiento", "category": "Frenos"},
    {"name": "Presión Neumático Delantero Izquierdo", "category": "Neumáticos y Suspensión"},
    {"name": "Presión Neumático Delantero Derecho", "category": "Neumáticos y Suspensión"},
    {"name": "Presión Neumático Trasero Izquierdo", "category": "Neumáticos y Suspensión"},
    {"name": "Presión Neumático Trasero Derecho", "category": "Neumáticos y Suspensión"},
    {"name": "Presión Neumático de Repuesto", "category": "Neumáticos y Suspensión"},
    {"name": "Profundidad Dibujo Neumáticos (Todos)", "category": "Neumáticos y Suspensión"},
    {"name": "Amortiguadores Delanteros (Fugas, Estado)", "category": "Neumáticos y Suspensión"},
    {"name": "Amortiguadores Traseros (Fugas, Estado)", "category": "Neumáticos y Suspensión"},
    {"name": "Luces de Cruce (Cortas)", "category": "Luces y Señalización"},
    {"name": "Luces de Carretera (Largas)", "category": "Luces y Señalización"},
    {"name": "Luces de Freno (Incluida tercera luz)", "category": "Luces y Señalización"},
    {"name": "Intermitentes Delanteros (Izq. y Der.)", "category": "Luces y Señalización"},
    {"name": "Intermitentes Traseros (Izq. y Der.)", "category": "Luces y Señalización"},
    {"name": "Luces de Emergencia (Warning)", "category": "Luces y Señalización"},
    {"name": "Luces Rotativas/Prioritarias Azules", "category": "Luces y Señalización"},
    {"name": "Luces Interiores Célula Sanitaria", "category": "Luces y Señalización"},
    {"name": "Nivel de Aceite Motor", "category": "Motor y Niveles"},
    {"name": "Nivel de Líquido Refrigerante", "category": "Motor y Niveles"},
    {"name": "Estado de Correas (Alternador, Dirección, A/A, etc.)", "category": "Motor y Niveles"},
    {"name": "Fugas Visibles en Compartimento Motor", "category": "Motor y Niveles"},
    {"name": "Batería Principal (Estado Bornes, Sujeción)", "category": "Motor y Niveles"},
    {"name": "Batería Auxiliar Célula Sanitaria", "category": "Motor y Niveles"},
    {"name": "Nivel Líquido Dirección Asistida", "category": "Motor y Niveles"},
]

DEFAULT_CONFIG = {
    STORAGE_LOCATIONS_KEY: DEFAULT_STORAGE_LOCATIONS,
    MECHANICAL_REVIEW_ITEMS_KEY: DEFAULT_MECHANICAL_REVIEW_ITEMS,
    NOTIFICATION_EMAIL_KEY: None,
}
