"""Bundles temáticos de palabras.

Por qué viven en el dominio:
- Son datos puros: el sintetizador de nombres los consume y el clasificador
  los usa en cleanup para reconocer alias generados.
- Un único registro evita que creación y cleanup diverjan.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.errors import InvalidParameterError

FORBIDDEN_TOKEN_CHARS = (".", "@")


class WordBundle(BaseModel):
    """Par inmutable de listas (prefijos, sufijos) identificado por una clave."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Clave del tema (p.ej. 'privacy-guardian').")
    name: str = Field(..., min_length=1, description="Nombre legible para la CLI.")
    description: str = Field(default="", description="Descripción corta del tema.")
    prefixes: tuple[str, ...] = Field(..., min_length=1)
    suffixes: tuple[str, ...] = Field(..., min_length=1)

    @field_validator("prefixes", "suffixes")
    @classmethod
    def _validate_tokens(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for token in value:
            if not token or token != token.lower():
                raise ValueError(f"word tokens must be non-empty lowercase: {token!r}")
            if any(ch in token for ch in FORBIDDEN_TOKEN_CHARS):
                raise ValueError(f"word tokens must not contain '.' or '@': {token!r}")
        return value

    @property
    def capacity(self) -> int:
        """Combinaciones `prefix.suffix` posibles (con repeticiones de lista)."""

        return len(self.prefixes) * len(self.suffixes)


def _bundle(key: str, name: str, description: str, prefixes: str, suffixes: str) -> WordBundle:
    return WordBundle(
        key=key,
        name=name,
        description=description,
        prefixes=tuple(prefixes.split()),
        suffixes=tuple(suffixes.split()),
    )


_BUNDLES: tuple[WordBundle, ...] = (
    _bundle(
        "privacy-guardian",
        "Privacy Guardian",
        "Security & anonymity themed - perfect for maximum privacy",
        """
        anonymous cipher crypt ghost hidden incognito masked
        phantom private secret secure shadow shield silent
        stealth vault veiled whisper cloak enigma obscure
        covert discrete guarded keeper sentinel warden aegis
        bastion fortress haven refuge sanctuary guardian protector
        defender encrypted locked sealed shielded armored fortified
        invisible unseen untraced untraceable nameless faceless void
        dark night twilight dusk shade umbra eclipse
        """,
        """
        vault cipher lock key gate wall shield guard
        keeper watcher sentinel proxy mask cloak veil
        shadow ghost phantom spirit shade wraith specter
        node relay tunnel bridge portal passage path
        route channel conduit link nexus hub core
        fortress bastion citadel haven refuge sanctuary asylum
        den lair cache stash reserve archive repository
        sentry lookout observer monitor scanner detector
        """,
    ),
    _bundle(
        "tech-wizard",
        "Tech Wizard",
        "Tech & coding themed - for the digital natives",
        """
        binary quantum neural cyber digital virtual pixel
        byte nano micro macro meta proto core kernel
        daemon thread async sync parallel vector matrix
        logic boolean algorithm regex syntax compile runtime
        stack heap cache buffer stream pipeline packet
        protocol network mesh grid cloud edge fog
        data crypto hash token session instance module
        script lambda delta alpha beta gamma omega
        """,
        """
        bit byte node core chip circuit gate port
        socket thread process daemon service worker agent
        bot proxy server client host mesh grid
        network cluster shard partition segment block chunk
        packet frame payload header footer wrapper container
        pod instance replica mirror cache buffer queue
        stack heap tree graph array vector matrix
        tensor scalar pointer reference handle descriptor
        """,
    ),
    _bundle(
        "nature-zen",
        "Nature Zen",
        "Calm & natural themed - peaceful and organic",
        """
        alpine amber arctic autumn azure breeze calm
        cascade cedar cloud coral crystal dawn dusk
        earth emerald forest frost glacial golden jade
        lunar maple marine meadow misty moss mountain
        ocean olive opal pacific pearl pebble pine
        quartz rain river sage sand sapphire sky
        snow solar spring stellar stone summer sunset
        thunder tide timber topaz valley verdant wild
        """,
        """
        bay beach brook canyon cave cliff cloud coast
        cove creek delta dune falls field fjord forest
        garden glacier grove harbor haven hill hollow island
        lake lagoon marsh meadow mesa mist mountain oasis
        ocean pass path peak pine plain pond prairie
        reef ridge river rock shore spring stone stream
        summit terrace trail tree valley vista wave wood
        """,
    ),
    _bundle(
        "urban-legend",
        "Urban Legend",
        "Modern & city themed - sleek and contemporary",
        """
        apex axis bold bright chrome concrete core edge
        electric epic flash flex fusion glitch glow grid
        high hyper instant jet kinetic level metro modern
        neon neural nexus night nova omega peak pixel
        prime prism pulse quick rapid razor reflex rhythm
        rush sharp signal sleek sonic spark speed spike
        surge swift sync tempo titan turbo ultra urban
        """,
        """
        ace arc axis beat blast blaze block bolt
        buzz cafe chip city club dash deck district
        drive drop edge flash flow flux grid hub
        lane level line link loop mall metro mode
        node pace park phase pier plaza point pulse
        quest rails rise route shift square station street
        strip sync tower track trade transit venue zone
        """,
    ),
    _bundle(
        "cosmic-explorer",
        "Cosmic Explorer",
        "Space & sci-fi themed - for the stargazers",
        """
        astral atomic aurora celestial cosmic dark distant
        eternal galactic gravity infinite interstellar light lunar
        meteor nebula neutron nova orbit photon plasma pulsar
        quantum quasar radiant solar space spectral star stellar
        super void warp zero andromeda apollo aries atlas
        aurora boson comet corona cosmos eclipse event exo
        fusion gamma helios horizon ion jupiter kepler laser
        lunar mars mercury milky orbit orion phoenix pluto
        polaris radiation red saturn sirius titan uranus vega
        """,
        """
        star nova nebula galaxy cosmos comet meteor orbit
        moon planet satellite asteroid sphere void quasar pulsar
        photon proton neutron electron particle wave field force
        ray beam light dark matter energy space time
        dimension portal gate wormhole rift flux drift shift
        jump leap warp drive engine reactor core station
        base outpost colony ship craft vessel probe explorer
        """,
    ),
    _bundle(
        "mystic-shadow",
        "Mystic Shadow",
        "Fantasy & mysterious themed - enigmatic and magical",
        """
        ancient arcane blessed celestial cryptic cursed dark
        divine dragon dream echo elder elven enchanted eternal
        fabled fallen forbidden forgotten frost gloom grim hidden
        holy lost lunar magic midnight mystic mythic night
        obsidian omen oracle phantom primal raven rune sacred
        shadow silent silver soul spectral spirit star storm
        twilight umbral void wicked wild witch wolf wraith
        """,
        """
        blade blood bone book cairn chalice circle coven
        crown crystal curse dawn dream dusk echo ember
        eye flame gate gaze gem glyph grimoire grove
        heart keeper key mark mirror moon oath oracle
        page pendant portal prophecy relic rite rune scroll
        seal seer shade sigil song soul spell spirit
        star stone talisman tome veil vessel ward whisper
        """,
    ),
)

BUNDLES: Mapping[str, WordBundle] = MappingProxyType({b.key: b for b in _BUNDLES})


def get_bundle(key: str) -> WordBundle:
    """Devuelve el bundle por clave o lanza `InvalidParameterError`."""

    normalized = (key or "").strip().lower()
    try:
        return BUNDLES[normalized]
    except KeyError:
        available = ", ".join(BUNDLES)
        raise InvalidParameterError(f"Unknown theme {key!r}. Available: {available}") from None


def bundle_by_index(index: int) -> WordBundle:
    """Selección 1-based tal como se muestra en la tabla de la CLI."""

    keys = list(BUNDLES)
    if not 1 <= index <= len(keys):
        raise InvalidParameterError(f"Bundle selection must be between 1 and {len(keys)}")
    return BUNDLES[keys[index - 1]]
