"""Narrative panel text shown alongside each stage of the sequence."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple


@dataclass(frozen=True)
class StagePayload:
    """Immutable title + paragraphs displayed by the info panel."""

    payload_id: str
    title: str
    paragraphs: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n\n".join((self.title,) + self.paragraphs)


_PAYLOADS: Dict[str, StagePayload] = {
    "engines": StagePayload(
        payload_id="engines",
        title="Galvanic Cell Engines (Topic 9.4)",
        paragraphs=(
            "Anode: Zn(s) -> Zn2+(aq) + 2e-. Zinc atoms give up two electrons "
            "and drift into solution as ions.",
            "Cathode: Cu2+(aq) + 2e- -> Cu(s). Copper ions collect the electrons "
            "arriving through the external wire.",
            "A salt bridge keeps both compartments neutral so the reaction keeps "
            "running.",
            "E cell = 0.34 V - (-0.76 V) = +1.10 V; dG = -nFE = -212 kJ/mol, so "
            "the cell reaction is spontaneous.",
        ),
    ),
    "powering": StagePayload(
        payload_id="powering",
        title="Charging the Focusing Crystals",
        paragraphs=(
            "Electrical energy from the cells pumps the crystal lattice into an "
            "excited state.",
            "Population inversion: more electrons sit in the upper level E2 than "
            "in the ground level E1.",
            "Each relaxation E2 -> E1 releases a photon of energy hf = E2 - E1.",
        ),
    ),
    "laser": StagePayload(
        payload_id="laser",
        title="Photoelectric Effect & Electromagnetic Radiation (Topics 1.7, 1.8)",
        paragraphs=(
            "KEmax = hf - phi. Only photons above the threshold frequency "
            "f0 = phi / h eject electrons.",
            "Stimulated emission: E2 + hf -> E1 + 2hf produces coherent photons "
            "that share frequency, phase and direction.",
            "At 532 nm: f = c / lambda = 5.64 x 10^14 Hz and E = hf = 3.74 x "
            "10^-19 J per photon, or 225 kJ/mol.",
        ),
    ),
    "firing": StagePayload(
        payload_id="firing",
        title="Superlaser Discharge",
        paragraphs=(
            "Eight crystal beams converge into a single collimated, "
            "monochromatic beam.",
            "Beam energy E = nhf grows with the number of photons, not with "
            "their individual energy.",
        ),
    ),
    "impact": StagePayload(
        payload_id="impact",
        title="Thermodynamics & Intermolecular Forces (Topics 6.1, 6.2, 7.1)",
        paragraphs=(
            "q = mc dT: the surface climbs from about 300 K to beyond 10^6 K.",
            "London dispersion, dipole-dipole, hydrogen bonding and network "
            "covalent bonds are all overcome as the crust sublimes.",
            "Bond dissociation and ionisation turn the vapour into plasma; "
            "PV = nRT drives an explosive volume expansion.",
        ),
    ),
    "energy": StagePayload(
        payload_id="energy",
        title="Energy Conservation (Topic 6.5)",
        paragraphs=(
            "Chemical -> electrical -> electromagnetic -> thermal -> kinetic.",
            "First law: dU = q - w. The total energy before the shot equals the "
            "total energy carried by heat, light and debris afterwards.",
            "dS universe > 0: the debris field is far more disordered than the "
            "planet it came from.",
        ),
    ),
}


def get_payload(payload_id: str) -> StagePayload:
    """Look up a stage payload by its id."""

    if payload_id not in _PAYLOADS:
        raise KeyError(f"Unknown payload: {payload_id}")
    return _PAYLOADS[payload_id]


def all_payloads() -> Iterable[StagePayload]:
    return _PAYLOADS.values()
