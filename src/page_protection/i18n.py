"""Localized messages for access denials and prevented lockouts.

Templates use the wiki message syntax the messages were written in:

* ``$1``, ``$2`` -- positional parameters (group list, group count);
* ``{{PLURAL:$2|singular|plural}}`` -- picks a form from the count.

Languages fall back along their subtag chain (``de-formal`` -> ``de``) and
finally to English.  ``badaccess-groups`` belongs to the host system; only
the languages that need it here carry a copy, the rest fall back.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from page_protection.core.errors import ConfigurationError

if TYPE_CHECKING:
    from page_protection.core.errors import AccessError

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGE = "en"

_PLURAL = re.compile(r"\{\{PLURAL:\$(\d+)\|([^{}]*)\}\}")
_PARAM = re.compile(r"\$(\d+)")

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "privatepp-desc": "Allows restricting page access based on user group",
        "privatepp-lockout-prevented": (
            "Lockout prevented: You have tried to restrict access to this page "
            "to {{PLURAL:$2|the group|one of the groups}} $1.\n"
            "Since you are not a member of {{PLURAL:$2|this group|any of these groups}}, "
            "you would not be able to access the page after saving it.\n"
            "Saving was aborted to avoid this."
        ),
        "badaccess-groups": (
            "The action you have requested is limited to users in "
            "{{PLURAL:$2|the group|one of the groups}}: $1."
        ),
    },
    "be-tarask": {
        "privatepp-desc": (
            "Дазваляе абмяжоўваць доступ да старонак пэўным групам удзельнікам"
        ),
        "privatepp-lockout-prevented": (
            "Папярэджанае самаабмежаваньне: вы намагаліся абмежаваць доступ да "
            "старонкі {{PLURAL:$2|групе|адной з груп}} $1. Паколькі вы не "
            "належыце да {{PLURAL:$2|гэтай групы|адной з гэтых груп}}, вы бы не "
            "змаглі адкрыць старонку пасьля захаваньня наладаў.\n"
            "Захаваньне было спыненае, каб пазьбегнуць гэтага."
        ),
    },
    "de": {
        "privatepp-desc": (
            "Ermöglicht das Beschränken das Zugangs zu Wikiseiten auf Basis "
            "von Benutzergruppen"
        ),
        "privatepp-lockout-prevented": (
            "Die Aussperrung wurde verhindert: Du hast versucht, den Zugang zu "
            "dieser Seite auf {{PLURAL:$2|die Benutzergruppe|die Benutzergruppen}} "
            "$1 zu beschränken.\n"
            "Da du kein Mitglied {{PLURAL:$2|dieser Benutzergruppe|einer dieser "
            "Benutzergruppen}} bist, könntest du nach dem Speichern nicht mehr "
            "auf die Seite zugreifen.\n"
            "Um dies zu vermeiden, wurde das Speichern abgebrochen."
        ),
        "badaccess-groups": (
            "Diese Aktion ist auf Benutzer beschränkt, die "
            "{{PLURAL:$2|der Gruppe|einer der Gruppen}} „$1“ angehören."
        ),
    },
    "de-formal": {
        "privatepp-lockout-prevented": (
            "Die Aussperrung wurde verhindert: Sie haben versucht, den Zugang zu "
            "dieser Seite auf {{PLURAL:$2|die Benutzergruppe|die Benutzergruppen}} "
            "$1 zu beschränken.\n"
            "Da Sie kein Mitglied {{PLURAL:$2|dieser Benutzergruppe|einer dieser "
            "Benutzergruppen}} sind, könnten Sie nach dem Speichern nicht mehr "
            "auf die Seite zugreifen.\n"
            "Um dies zu vermeiden, wurde das Speichern abgebrochen."
        ),
    },
    "dsb": {
        "privatepp-desc": (
            "Zmóžnja wobgranicowanje pśistupa na bok na zakłaźe wužywarskeje kupki"
        ),
        "privatepp-lockout-prevented": (
            "Wuzamknjenje jo se zajźowało: Sy wopytał pśistup k toś tomu bokoju "
            "na {{PLURAL:$2|kupku|jadnu z kupkow}} $1 wobgranicowaś. Dokulaž "
            "njejsy cłonk {{PLURAL:$2|oś togo kupki|jadneje z toś tych kupkow}}, "
            "njeby měł pó składowanju žeden pśistup na bok.\n"
            "Składowanje jo se pśetergnuło, aby to wobinuło."
        ),
    },
    "fr": {
        "privatepp-desc": (
            "Permet de restreindre l'accès à la page à un groupe d'utilisateurs"
        ),
        "privatepp-lockout-prevented": (
            "Verrouillage empêché: Vous avez essayé de limiter l'accès à cette "
            "page {{PLURAL:$2|au groupe|un des groupes}} $1 .\n"
            "Comme vous n'êtes pas membre de {{PLURAL:$2|ce groupe|un de ces "
            "groupes}}, vous ne seriez plus en mesure d'accéder à la page après "
            "l'avoir enregistrée.\n"
            "L'enregistrement a été annulé pour éviter cela."
        ),
        "badaccess-groups": (
            "L'action que vous avez demandée est limitée aux utilisateurs "
            "{{PLURAL:$2|du groupe|de l'un des groupes}} : $1."
        ),
    },
    "gl": {
        "privatepp-desc": (
            "Permite restrinxir o acceso ás páxinas segundo o grupo ao que "
            "pertenza o usuario"
        ),
        "privatepp-lockout-prevented": (
            "Bloqueo preventivo: Intentou restrinxir o acceso a esta páxina aos "
            "membros {{PLURAL:$2|do grupo|dos grupos}} $1.\n"
            "Dado que non pertence a {{PLURAL:$2|este grupo|ningún destes grupos}}, "
            "non poderá acceder á páxina despois de gardar.\n"
            "Cancelouse o gardado para evitar isto."
        ),
    },
    "hsb": {
        "privatepp-desc": (
            "Zmóžnja wobmjezowanje přistupa na strony na zakładźe wužiwarskeje "
            "skupiny"
        ),
        "privatepp-lockout-prevented": (
            "Wuzamknjenje je so zadźěwało: Sy spytał přistup k tutej stronje na "
            "{{PLURAL:$2|skupinsku skupinu|jednu ze skupinow}} $1 wobmjezować. "
            "Dokelž čłon {{PLURAL:$2|tuteje skupiny|jedneje z tutych skupinow}} "
            "njejsy, njeby po składowanju žadyn přistup na stronu měł.\n"
            "Składowanje je so přetorhnyło, zo by to wobešło."
        ),
    },
    "ia": {
        "privatepp-desc": (
            "Permitte restringer le accesso a paginas secundo le gruppo del usator"
        ),
        "privatepp-lockout-prevented": (
            "Exclusion prevenite: Tu ha tentate limitar le accesso a iste pagina "
            "{{PLURAL:$2|al gruppo|a un del gruppos}} $1.\n"
            "Post que tu non es membro de {{PLURAL:$2|iste gruppo|alcun de iste "
            "gruppos}}, tu non poterea acceder al pagina post salveguardar lo.\n"
            "Le salveguarda ha essite abortate pro evitar isto."
        ),
    },
    "lb": {
        "privatepp-desc": (
            "Erlaabt et den Accès op Säiten, op Basis vun de Benotzergruppen, "
            "ze limitéiern"
        ),
    },
    "mk": {
        "privatepp-desc": (
            "Овозможува ограничување на пристапот до страници во зависност од "
            "корисничката група"
        ),
        "privatepp-lockout-prevented": (
            "Ограничувањето на пристапот е спречено: Се обидовте страницата да ја "
            "направите пристапна само за членови на {{PLURAL:$2|групата|една од "
            "групите}} $1.\n"
            "Бидејќи не членувате во {{PLURAL:$2|групата|ниедна од нив}}, самите "
            "вие нема да можете да пристапите на неа откако ќе ја зачувате.\n"
            "За да се избегне ова, зачувувањето е откажано."
        ),
    },
    "nl": {
        "privatepp-desc": (
            "Maakt het mogelijk paginatoegang te beperken volgens gebruikersgroepen"
        ),
        "privatepp-lockout-prevented": (
            "Beveiliging voorkomen: U hebt geprobeerd toegang tot deze pagina te "
            "beperken voor {{PLURAL:$2|de groep|één van de groepen}} $1. Omdat u "
            "geen lid bent van {{PLURAL:$2|deze groep|deze groepen}}, zou u geen "
            "toegang meer hebben tot deze pagina na ze op te slaan. Het opslaan "
            "is afgebroken om dit te voorkomen."
        ),
    },
    "pl": {
        "privatepp-desc": (
            "Pozwala na ograniczanie dostępu strony na podstawie grupy użytkownika"
        ),
        "privatepp-lockout-prevented": (
            "Uniemożliwiono blokadę: próbujesz ograniczyć dostęp do tej strony "
            "dla {{PLURAL:$2|grupy|jednej z grup}} $1.\n"
            "Ponieważ nie jesteś członkiem {{PLURAL:$2|tej grupy|żadnej tych "
            "grup}}, nie udałoby ci się uzyskać dostępu do strony po zapisaniu "
            "tego ustawienia.\n"
            "Zapisywanie zostało przerwane aby temu zapobiec."
        ),
    },
}

COMMA_SEPARATORS: dict[str, str] = {
    "en": ", ",
    "de": ", ",
    "fr": ", ",
}


def language_chain(lang: str | None) -> list[str]:
    """Return *lang*, its parent languages and the fallback, most specific first."""
    chain: list[str] = []
    if lang:
        parts = lang.lower().split("-")
        for i in range(len(parts), 0, -1):
            chain.append("-".join(parts[:i]))
    if FALLBACK_LANGUAGE not in chain:
        chain.append(FALLBACK_LANGUAGE)
    return chain


def _pick_plural(count: int, forms: Sequence[str]) -> str:
    if not forms:
        return ""
    return forms[0] if count == 1 else forms[-1]


class MessageCatalog:
    """Looks up and formats localized message templates.

    Parameters
    ----------
    messages:
        ``lang -> key -> template`` overrides, merged over :data:`MESSAGES`.
    """

    def __init__(self, messages: dict[str, dict[str, str]] | None = None) -> None:
        self._messages: dict[str, dict[str, str]] = {
            lang: dict(table) for lang, table in MESSAGES.items()
        }
        for lang, table in (messages or {}).items():
            self._messages.setdefault(lang, {}).update(table)

    def template(self, key: str, lang: str | None = None) -> str:
        """Return the raw template for *key* in the closest available language.

        Raises
        ------
        ConfigurationError
            If no language, not even the fallback, defines *key*.
        """
        for candidate in language_chain(lang):
            template = self._messages.get(candidate, {}).get(key)
            if template is not None:
                return template
        raise ConfigurationError(
            f"Unknown message key: {key}",
            details={"key": key, "lang": lang},
        )

    def comma_list(self, items: Sequence[str], lang: str | None = None) -> str:
        """Join *items* with the comma separator of *lang*."""
        separator = ", "
        for candidate in language_chain(lang):
            if candidate in COMMA_SEPARATORS:
                separator = COMMA_SEPARATORS[candidate]
                break
        return separator.join(items)

    def format(self, key: str, *params: object, lang: str | None = None) -> str:
        """Render message *key* with positional *params*."""
        text = self.template(key, lang)

        def plural(match: re.Match[str]) -> str:
            index = int(match.group(1)) - 1
            forms = match.group(2).split("|")
            try:
                count = int(params[index])  # type: ignore[call-overload]
            except (IndexError, TypeError, ValueError):
                logger.debug("PLURAL parameter $%s missing in %s", index + 1, key)
                count = 1
            return _pick_plural(count, forms)

        def param(match: re.Match[str]) -> str:
            index = int(match.group(1)) - 1
            if 0 <= index < len(params):
                return str(params[index])
            return match.group(0)

        text = _PLURAL.sub(plural, text)
        return _PARAM.sub(param, text)

    def render_error(self, error: AccessError, lang: str | None = None) -> str:
        """Render an access error with its own message key and payload."""
        return self.format(
            error.message_key,
            self.comma_list(error.group_names, lang),
            error.count,
            lang=lang,
        )
