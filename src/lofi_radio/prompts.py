"""Prompt construction for every generation stage.

Pure functions only: nothing here talks to a service. The text client
renders music and metadata requests from these templates, the image client
receives build_image_prompt output, and both video clients share
build_video_prompt so the looping visual matches the slot and the track.
"""

import hashlib
import json
import random
import re
from dataclasses import dataclass
from typing import Optional

from .slots import SlotConfig

GENRES: tuple[str, ...] = (
    "lofi hip-hop",
    "jazz-infused lofi",
    "ambient lofi",
    "chillhop",
    "synthwave lofi",
    "lofi boom bap",
    "vaporwave lofi",
    "instrumental chillhop",
    "ambient downtempo",
    "jazz-hop lofi",
    "dreamy electronica lofi",
    "instrumental trip-hop lofi",
    "slow-tempo electro jazz lofi",
    "lofi house",
    "lofi techno",
    "lofi soul",
    "lofi funk",
    "lofi classical",
    "lofi acoustic",
    "lofi piano",
    "lofi guitar",
    "study beats",
)

INSTRUMENTATION: dict[str, tuple[str, ...]] = {
    "minimal": ("soft piano", "warm synth pad", "vinyl crackle", "subtle bass"),
    "jazz": ("mellow jazz piano", "upright bass", "soft brushed drums", "vinyl texture"),
    "electronic": ("analog synth", "warm pad", "lo-fi drum machine", "vinyl sample"),
    "acoustic": ("acoustic guitar", "soft piano", "gentle percussion", "ambient texture"),
    "hybrid": ("piano", "synth pad", "soft bass", "vinyl crackle", "subtle drums"),
}


def instrumentation_for_genre(genre: str) -> tuple[str, ...]:
    g = genre.lower()
    if "jazz" in g:
        return INSTRUMENTATION["jazz"]
    if any(word in g for word in ("electronic", "synthwave", "techno", "house")):
        return INSTRUMENTATION["electronic"]
    if any(word in g for word in ("acoustic", "guitar", "piano")):
        return INSTRUMENTATION["acoustic"]
    if any(word in g for word in ("ambient", "minimal")):
        return INSTRUMENTATION["minimal"]
    return INSTRUMENTATION["hybrid"]


def choose_genre_and_mood(slot: SlotConfig, rng: Optional[random.Random] = None) -> tuple[str, str]:
    """Pick a genre and one of the slot's moods."""
    rng = rng or random.Random()
    return rng.choice(GENRES), rng.choice(slot.moods)


def build_music_request(slot: SlotConfig, genre: str, mood: str) -> str:
    """Render the request asking the text model for a Mureka music prompt."""
    instruments = ", ".join(instrumentation_for_genre(genre))
    return f"""You are an AI music designer specializing in study and focus music. Write a detailed, professional music prompt for an AI music generator to produce an instrumental-only {genre} track for {slot.id} listening.

Time of day: {slot.id.upper()}
Vibe: {slot.vibe}
Genre: {genre}
Mood: {mood}
Target tempo: {slot.tempo_preferred} BPM (range: {slot.tempo_min}-{slot.tempo_max} BPM)

Requirements:
1. GENRE & STYLE: "{genre}" with lofi characteristics (vinyl texture, warm analog feel, subtle imperfections).
2. MOOD & EMOTION: convey "{mood}" with specific emotional descriptors.
3. INSTRUMENTATION: {instruments}, with timbral qualities for each.
4. TEMPO & RHYTHM: {slot.tempo_preferred} BPM and the rhythmic feel.
5. STRUCTURE: gentle intro, main loop with subtle variations, smooth transitions.
6. PRODUCTION: soft compression, gentle reverb, tape saturation, low-pass filtering.
7. NEGATIVE: NO vocals, NO vocal samples, NO lyrics, NO sudden changes, NO high-energy drops.

Respond with a single flowing music prompt under 1000 characters. Return ONLY the prompt text: no explanations, no JSON, no markdown."""


METADATA_SYSTEM_PROMPT = """You are a music marketing assistant.
Given a time-of-day slot (morning, midday, or night) and a music description prompt,
write a compelling YouTube title, an engaging SEO-friendly description, and a short list of tags.

Requirements:
- The title is unique, evocative, and reflects the vibe and genre described in the prompt.
- The description is 2-3 sentences describing the music's mood, style, and character.
- Tags are lowercase, relevant to the described music, and YouTube-friendly.
- Only use genres and styles that match the music prompt.
- Do not mention AI, automation, or anything synthetic.
- Do not include markdown, code blocks, or explanations.

Respond only with a valid JSON object with the keys "title", "description", and "tags" (an array of strings)."""


def build_metadata_request(slot_id: str, music_prompt: str) -> str:
    return f"Slot: {slot_id}\nPrompt: {music_prompt}"


IMAGE_PROMPT_LIMIT = 1000


def build_image_prompt(music_prompt: str, slot_id: str) -> str:
    """Cover art prompt derived from the music prompt, capped in length."""
    prompt = (
        f'Anime-style album cover inspired by the following: "{music_prompt}". '
        f"Set during the {slot_id}. The illustration blends cozy 1980s city pop "
        f"fashion with a sleek, modern setting. Consistent anime cover art style."
    )
    if len(prompt) > IMAGE_PROMPT_LIMIT:
        return prompt[: IMAGE_PROMPT_LIMIT - 5] + "..."
    return prompt


# Time-of-day wording rules: detected phrase -> replacement, per slot.
# Longer phrases win over shorter ones at the same position.
SLOT_WORDING: dict[str, dict[str, str]] = {
    "morning": {
        "late afternoon": "early morning",
        "golden hour": "golden sunrise",
        "twilight": "dawn",
        "evening": "morning",
        "sunset": "sunrise",
        "night": "morning",
        "dusk": "dawn",
    },
    "midday": {
        "late afternoon": "midday",
        "golden hour": "bright midday",
        "twilight": "midday",
        "sunrise": "midday",
        "evening": "midday",
        "morning": "midday",
        "sunset": "midday",
        "night": "midday",
        "dawn": "midday",
        "dusk": "midday",
    },
    "night": {
        "golden hour": "night",
        "afternoon": "night",
        "sunrise": "night",
        "morning": "night",
        "midday": "night",
        "bright": "dark",
        "dawn": "night",
        "noon": "night",
    },
}

SLOT_MARKERS: dict[str, tuple[str, ...]] = {
    "morning": ("morning", "dawn", "sunrise"),
    "midday": ("midday", "afternoon", "noon"),
    "night": ("night", "evening", "twilight"),
}


def _match_case(source: str, replacement: str) -> str:
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def adjust_for_slot(text: str, slot_id: str) -> str:
    """Rewrite time-of-day wording so a scene matches the slot.

    All substitutions are applied in one pass, so a replacement is never
    rewritten again by a later rule. If the result still names no time of
    day belonging to the slot, a short anchor sentence is appended.
    """
    rules = SLOT_WORDING.get(slot_id)
    if not rules:
        return text

    phrases = sorted(rules, key=len, reverse=True)
    pattern = re.compile(r"\b(" + "|".join(re.escape(p) for p in phrases) + r")\b", re.IGNORECASE)
    adjusted = pattern.sub(lambda m: _match_case(m.group(0), rules[m.group(0).lower()]), text)

    lowered = adjusted.lower()
    if not any(marker in lowered for marker in SLOT_MARKERS[slot_id]):
        adjusted = f"{adjusted.rstrip()} The scene takes place in the {slot_id}."
    return adjusted


@dataclass(frozen=True)
class SceneTemplate:
    id: str
    keywords: tuple[str, ...]
    slot_affinity: tuple[str, ...]
    description: str


SCENE_TEMPLATES: tuple[SceneTemplate, ...] = (
    SceneTemplate(
        id="city_neon_rooftop",
        keywords=("city", "neon", "urban", "metropolis", "night", "downtown"),
        slot_affinity=("night",),
        description=(
            "Still frame lo-fi anime night city skyline viewed from a fixed rooftop vantage. "
            "Only subtle, repeating animations: neon lights flickering in periodic cycles, gentle rain "
            "falling in continuous loops, distant clouds drifting in repeating patterns, and steam rising "
            "in cyclical waves. No people present."
        ),
    ),
    SceneTemplate(
        id="city_sunrise_terrace",
        keywords=("sunrise", "dawn", "morning", "city", "skyline", "golden"),
        slot_affinity=("morning",),
        description=(
            "Still frame anime city terrace at sunrise with potted plants and a quiet cafe table. "
            "Only subtle, repeating animations: curtains swaying in periodic waves from gentle wind, "
            "steam rising from a coffee cup in cyclical waves, and soft clouds drifting in repeating patterns."
        ),
    ),
    SceneTemplate(
        id="coastal_boardwalk",
        keywords=("beach", "ocean", "coast", "shore", "waves", "sea", "harbor"),
        slot_affinity=("midday",),
        description=(
            "Still frame anime coastal boardwalk in bright daylight. Only subtle, repeating animations: "
            "waves rolling in continuous loops, flags swaying in repeating patterns from wind, and light "
            "reflections dancing on the water in loops."
        ),
    ),
    SceneTemplate(
        id="rainy_alley",
        keywords=("rain", "alley", "shower", "storm", "wet", "puddle"),
        slot_affinity=("night",),
        description=(
            "Still frame anime rain-soaked alley with neon signage. Only subtle, repeating animations: "
            "rain falling in continuous loops, reflections rippling on puddles in periodic patterns, neon "
            "lights flickering gently in cycles, and steam vents pulsing in repeating motions."
        ),
    ),
    SceneTemplate(
        id="lakeside_mist",
        keywords=("lake", "mist", "water", "valley", "reflection"),
        slot_affinity=("morning", "midday"),
        description=(
            "Still frame anime lakeside panorama. Only subtle, repeating animations: mist rolling in "
            "periodic waves, water ripples in repeating patterns, reeds swaying in loops from gentle wind, "
            "and light reflections dancing continuously."
        ),
    ),
    SceneTemplate(
        id="study_window",
        keywords=("study", "focus", "piano", "room", "desk", "book"),
        slot_affinity=("morning", "midday", "night"),
        description=(
            "Still frame anime study room interior facing a large window over the city. Only subtle, "
            "repeating animations: a desk lamp glow breathing in slow cycles, leaves on a window plant "
            "swaying in loops, and dust particles drifting in closed circular paths through the light."
        ),
    ),
)

# Closed set of effects a loopable scene may contain
ALLOWED_EFFECTS: tuple[str, ...] = (
    "weather: rain or snow falling in periodic loops",
    "wind: leaves, grass, fabric or flags swaying in repeating patterns",
    "lighting: neon signs, lamps or windows flickering or pulsing in periodic cycles",
    "water: ripples, waves and reflections moving in continuous loops",
    "atmosphere: fog, mist or steam rolling in cyclical waves",
    "particles: dust or light motes drifting in closed circular paths",
)

FORBIDDEN_SUBJECTS: tuple[str, ...] = (
    "vehicles, trains or any moving transportation",
    "animals, birds or any living creatures",
    "people or characters",
    "boats, planes or flying objects",
    "text, titles, logos or captions",
)


def _stable_index(seed: str, size: int) -> int:
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % size


def pick_scene_template(music_prompt: str, slot_id: str) -> SceneTemplate:
    """Choose a scene deterministically from slot affinity, then keywords."""
    lower = music_prompt.lower()
    slot_matches = [t for t in SCENE_TEMPLATES if slot_id in t.slot_affinity]
    keyword_matches = [t for t in slot_matches if any(kw in lower for kw in t.keywords)]
    candidates = keyword_matches or slot_matches or list(SCENE_TEMPLATES)
    return candidates[_stable_index(f"{slot_id}|{music_prompt}", len(candidates))]


def summarize_mood(music_prompt: str, limit: int = 300) -> str:
    """Short mood cue from a music prompt (JSON or free text)."""
    if not music_prompt:
        return ""
    try:
        parsed = json.loads(music_prompt)
    except ValueError:
        return re.sub(r"\s+", " ", music_prompt).strip()[:limit]
    if not isinstance(parsed, dict):
        return re.sub(r"\s+", " ", music_prompt).strip()[:limit]
    parts = [f"{key}: {parsed[key]}" for key in ("Title", "Mood", "Instruments") if parsed.get(key)]
    return " | ".join(parts)[:limit]


def build_video_prompt(music_prompt: str, slot_id: str) -> str:
    """Constrained prompt for a seamlessly looping background video.

    Enforces a locked camera, only the effects in ALLOWED_EFFECTS, and
    identical first and last frames.
    """
    scene = pick_scene_template(music_prompt, slot_id)
    lines = [
        "Style: 1980s hand-drawn anime OVA aesthetic with warm film grain, atmospheric haze and "
        "nostalgic color grading.",
        adjust_for_slot(scene.description, slot_id),
    ]

    mood = summarize_mood(music_prompt)
    if mood:
        lines.append(f"Atmosphere cues from music: {mood}")

    lines += [
        "",
        "CAMERA: completely static, locked like a tripod-mounted photograph. No zoom, pan, tilt, "
        "dolly, tracking, rotation, focus drift, parallax or shake. Framing is identical from the "
        "first frame to the last.",
        "",
        "ALLOWED MOTION (environmental effects only, each periodic and cyclic):",
    ]
    lines += [f"- {effect}" for effect in ALLOWED_EFFECTS]
    lines += ["", "FORBIDDEN:"]
    lines += [f"- NO {subject}" for subject in FORBIDDEN_SUBJECTS]
    lines += [
        "",
        "PERFECT LOOP:",
        "- The first frame and the last frame are visually identical.",
        "- Every animated element completes exactly one full cycle and returns to its starting state.",
        "- Single continuous shot: no cuts, transitions or black frames.",
        "- Visuals only; any rendered audio is discarded.",
    ]
    return "\n".join(lines)
