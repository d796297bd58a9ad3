from app import create_app
from extensions import db
from trivia1v1.models import Achievement, Category, Question

CATEGORIES = [
    ("Historia", "📜", "#c0392b", [
        ("¿En qué año llegó Colón a América?", ["1492", "1502", "1488", "1510"], 0),
        ("¿Quién fue el primer emperador romano?", ["Julio César", "Augusto", "Nerón", "Trajano"], 1),
        ("¿Qué muro cayó en 1989?", ["Adriano", "Berlín", "Gran Muralla", "Jericó"], 1),
    ]),
    ("Ciencia", "🔬", "#27ae60", [
        ("¿Cuál es el símbolo químico del oro?", ["Ag", "Go", "Au", "Or"], 2),
        ("¿Cuántos planetas tiene el sistema solar?", ["7", "8", "9", "10"], 1),
        ("¿Qué gas absorben las plantas?", ["Oxígeno", "Nitrógeno", "CO2", "Helio"], 2),
    ]),
    ("Geografía", "🌍", "#2980b9", [
        ("¿Cuál es el río más largo de Sudamérica?", ["Paraná", "Amazonas", "Orinoco", "Magdalena"], 1),
        ("¿Capital de Australia?", ["Sídney", "Melbourne", "Canberra", "Perth"], 2),
        ("¿En qué continente está Egipto?", ["Asia", "África", "Europa", "Oceanía"], 1),
    ]),
    ("Arte", "🎨", "#8e44ad", [
        ("¿Quién pintó La Gioconda?", ["Miguel Ángel", "Rafael", "Da Vinci", "Botticelli"], 2),
        ("¿De qué país era Frida Kahlo?", ["México", "España", "Chile", "Cuba"], 0),
        ("¿Qué instrumento tocaba Paganini?", ["Piano", "Violín", "Flauta", "Arpa"], 1),
    ]),
    ("Deportes", "⚽", "#e67e22", [
        ("¿Cuántos jugadores tiene un equipo de fútbol en cancha?", ["9", "10", "11", "12"], 2),
        ("¿Cada cuántos años hay Juegos Olímpicos de verano?", ["2", "3", "4", "5"], 2),
        ("¿En qué deporte se usa un tee?", ["Golf", "Tenis", "Rugby", "Polo"], 0),
    ]),
    ("Entretenimiento", "🎬", "#f1c40f", [
        ("¿Quién creó a Mickey Mouse?", ["Walt Disney", "Stan Lee", "Jim Henson", "Hanna"], 0),
        ("¿Cuántos libros tiene la saga de Harry Potter?", ["5", "6", "7", "8"], 2),
        ("¿Qué banda cantó 'Bohemian Rhapsody'?", ["Queen", "ABBA", "Beatles", "Kiss"], 0),
    ]),
]

ACHIEVEMENTS = [
    ("Primera partida", "Juega tu primera partida 1v1", "🎮", "matches_played", 1),
    ("Primera victoria", "Gana una partida 1v1", "🏆", "wins", 1),
    ("En racha", "Consigue 3 respuestas seguidas", "🔥", "streak", 3),
    ("Coleccionista", "Suma 500 puntos", "💎", "total_points", 500),
]

app = create_app()

with app.app_context():
    db.create_all()

    for name, icon, color, questions in CATEGORIES:
        category = Category.query.filter_by(name=name).first()
        if not category:
            category = Category(name=name, icon=icon, color=color, description="")
            db.session.add(category)
            db.session.flush()
        if Question.query.filter_by(category_id=category.id).first():
            continue
        for text, options, correct in questions:
            question = Question(
                category_id=category.id,
                question_text=text,
                correct_answer=correct,
                level="libre",
                difficulty="medium",
                points=10,
                is_active=True,
            )
            question.set_options(options)
            db.session.add(question)

    for name, description, icon, requirement_type, value in ACHIEVEMENTS:
        if not Achievement.query.filter_by(name=name).first():
            db.session.add(Achievement(
                name=name,
                description=description,
                icon=icon,
                requirement_type=requirement_type,
                requirement_value=value,
            ))

    db.session.commit()
    print("DB initialized. Categories:", Category.query.count(), "Questions:", Question.query.count())
