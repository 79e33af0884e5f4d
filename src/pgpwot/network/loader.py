# -*- encoding: utf-8 -*-
"""
pgpwot Loader - Builds a Network from pre-verified certificate records.

Cryptographic verification happens outside this package: every
SignatureRecord carries the verifier's verdict in `verified`. The loader
applies the remaining Web of Trust policy checks (signature type, critical
subpackets, liveness, issuer validity window, algorithm policy) and turns
the surviving signatures into edge components.

A rejected signature is logged and dropped. Loading never aborts because
of a single bad signature.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Iterable, Mapping, Optional

from pgpwot.exceptions import RejectionDetail, SignatureRejected
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.network import Network, NetworkBuilder
from pgpwot.network.node import Node
from pgpwot.network.primitives import (
    FULLY_TRUSTED,
    Identifier,
    RegexSet,
    RevocationState,
    TrustDepth,
    to_seconds,
    utcnow,
)

logger = logging.getLogger(__name__)


class SignatureType(IntEnum):
    """OpenPGP signature types relevant to the Web of Trust."""
    GENERIC_CERTIFICATION = 0x10
    PERSONA_CERTIFICATION = 0x11
    CASUAL_CERTIFICATION = 0x12
    POSITIVE_CERTIFICATION = 0x13
    DIRECT_KEY = 0x1F
    KEY_REVOCATION = 0x20
    CERTIFICATION_REVOCATION = 0x30


CERTIFICATION_TYPES = frozenset({
    SignatureType.GENERIC_CERTIFICATION,
    SignatureType.PERSONA_CERTIFICATION,
    SignatureType.CASUAL_CERTIFICATION,
    SignatureType.POSITIVE_CERTIFICATION,
})


@dataclass
class SignatureRecord:
    """
    A third-party signature found on a certificate.

    Attributes:
        issuer: fingerprint of the issuing certificate
        signature_type: OpenPGP signature type
        creation_time: signature creation time
        verified: verdict of the external cryptographic verifier
        user_id: signed user ID, None for direct-key signatures
        expiration_time: signature expiration time, if any
        trust_amount: trust signature amount (120 when no trust subpacket)
        trust_depth: trust signature depth (0 when no trust subpacket)
        regexes: regular expression subpackets
        exportable: False for local signatures
        hash_algorithm: name of the digest algorithm, e.g. "SHA256"
        public_key_algorithm: name of the issuer's key algorithm, e.g. "EDDSA"
        critical_unknown_subpackets: critical subpacket tags the parser did not understand
        critical_notations: names of notations marked critical
    """
    issuer: str
    signature_type: SignatureType
    creation_time: datetime
    verified: bool = True
    user_id: Optional[str] = None
    expiration_time: Optional[datetime] = None
    trust_amount: int = FULLY_TRUSTED
    trust_depth: int = 0
    regexes: tuple = ()
    exportable: bool = True
    hash_algorithm: str = "SHA256"
    public_key_algorithm: str = "EDDSA"
    critical_unknown_subpackets: tuple = ()
    critical_notations: tuple = ()


@dataclass
class CertificateRecord:
    """
    A certificate as delivered by the certificate store.

    Attributes:
        fingerprint: primary key fingerprint
        creation_time: primary key creation time
        expiration_time: primary key expiration time, if any
        revocation: revocation state of the certificate
        user_ids: user IDs mapped to their revocation state
        signatures: third-party signatures over this certificate
        usable: False if the certificate could not be validated at all
    """
    fingerprint: str
    creation_time: datetime
    expiration_time: Optional[datetime] = None
    revocation: RevocationState = field(default_factory=RevocationState.not_revoked)
    user_ids: Mapping[str, RevocationState] = field(default_factory=dict)
    signatures: list[SignatureRecord] = field(default_factory=list)
    usable: bool = True


@dataclass
class SignaturePolicy:
    """
    Algorithm and notation policy for signature acceptance.

    Attributes:
        hash_algorithms: accepted digest algorithms
        public_key_algorithms: accepted issuer key algorithms
        hash_algorithm_cutoffs: digest algorithms only accepted for
            signatures created before the given time
        known_notations: notation names that may be marked critical
    """
    hash_algorithms: frozenset = frozenset({
        "SHA224", "SHA256", "SHA384", "SHA512", "SHA3-256", "SHA3-512",
    })
    public_key_algorithms: frozenset = frozenset({
        "RSA", "DSA", "ECDSA", "EDDSA", "ED25519", "ED448",
    })
    hash_algorithm_cutoffs: Mapping[str, datetime] = field(default_factory=lambda: {
        "SHA1": datetime(2013, 2, 1, tzinfo=timezone.utc),
    })
    known_notations: frozenset = frozenset()

    def accepts_hash(self, algorithm: str, creation_time: datetime) -> bool:
        algorithm = algorithm.upper()
        if algorithm in self.hash_algorithms:
            return True
        cutoff = self.hash_algorithm_cutoffs.get(algorithm)
        return cutoff is not None and to_seconds(creation_time) < to_seconds(cutoff)

    def accepts_public_key(self, algorithm: str) -> bool:
        return algorithm.upper() in self.public_key_algorithms


class NetworkLoader:
    """
    Turns CertificateRecords into a Network.

    Certificates are indexed as nodes first (first occurrence of a
    fingerprint wins, unusable certificates are skipped), then each
    certificate's incoming signatures are checked and added as edge
    components.

    Usage:
        loader = NetworkLoader(reference_time=now)
        network = loader.load(records)
        for detail in loader.rejections:
            print(detail.reason)
    """

    def __init__(self, policy: Optional[SignaturePolicy] = None,
                 reference_time: Optional[datetime] = None):
        self.policy = policy or SignaturePolicy()
        self.reference_time = reference_time or utcnow()
        self.rejections: list[RejectionDetail] = []

    def load(self, certificates: Iterable[CertificateRecord]) -> Network:
        builder = NetworkBuilder().set_reference_time(self.reference_time)
        records: dict[Identifier, CertificateRecord] = {}

        for cert in certificates:
            fpr = Identifier(cert.fingerprint)
            if not cert.usable:
                logger.warning("Skipping unusable certificate %s", fpr)
                continue
            if fpr in records:
                logger.warning("Duplicate certificate %s, keeping the first one", fpr)
                continue
            records[fpr] = cert
            builder.add_node(Node(fpr, cert.expiration_time, cert.revocation, cert.user_ids))

        for fpr, cert in records.items():
            target = builder.nodes[fpr]
            for sig in cert.signatures:
                issuer_fpr = Identifier(sig.issuer)
                issuer_cert = records.get(issuer_fpr)
                if issuer_cert is None:
                    logger.debug("Issuer %s of signature on %s is not in the store", issuer_fpr, fpr)
                    continue
                try:
                    self.check(issuer_cert, cert, sig)
                except SignatureRejected as ex:
                    self.rejections.append(ex.detail)
                    logger.warning("Cannot verify signature by %s on cert of %s%s: %s",
                                   issuer_fpr, fpr,
                                   "" if sig.user_id is None else f" for '{sig.user_id}'",
                                   ex.detail.reason)
                    continue
                builder.add_component(self.component(builder.nodes[issuer_fpr], target, sig))

        network = builder.build()
        logger.info("Loaded network with %d nodes, %d edges, %d signatures (%d rejected)",
                    len(network.nodes), network.number_of_edges,
                    network.number_of_signatures, len(self.rejections))
        return network

    def check(self, issuer: CertificateRecord, target: CertificateRecord,
              sig: SignatureRecord) -> None:
        """
        Apply the signature acceptance rules.

        Raises:
            SignatureRejected: with the first rule that failed
        """

        def reject(reason: str):
            raise SignatureRejected(RejectionDetail(
                issuer=str(Identifier(issuer.fingerprint)),
                target=str(Identifier(target.fingerprint)),
                reason=reason,
                user_id=sig.user_id,
            ))

        if not sig.verified:
            reject("cryptographic verification failed")

        if sig.user_id is None:
            if sig.signature_type != SignatureType.DIRECT_KEY:
                reject(f"signature type {sig.signature_type.name} is not a delegation")
        else:
            if sig.signature_type not in CERTIFICATION_TYPES:
                reject(f"signature type {sig.signature_type.name} is not a certification")
            if sig.user_id not in target.user_ids:
                reject(f"user ID '{sig.user_id}' is not bound to the certificate")

        if sig.critical_unknown_subpackets:
            reject(f"critical unknown subpackets {list(sig.critical_unknown_subpackets)}")
        unknown = [n for n in sig.critical_notations if n not in self.policy.known_notations]
        if unknown:
            reject(f"critical unknown notations {unknown}")

        created = to_seconds(sig.creation_time)
        if created > to_seconds(self.reference_time):
            reject("signature was created after the reference time")
        if sig.expiration_time is not None and \
                to_seconds(sig.expiration_time) <= to_seconds(self.reference_time):
            reject("signature is expired")

        if issuer.revocation.is_hard:
            reject(f"certificate {Identifier(issuer.fingerprint)} is hard revoked")
        if created < to_seconds(issuer.creation_time):
            reject("signature predates the issuer")
        if issuer.revocation.is_soft and created > to_seconds(issuer.revocation.timestamp):
            reject("signature was created after the issuer was revoked")
        if issuer.expiration_time is not None and created > to_seconds(issuer.expiration_time):
            reject("signature was created after the issuer expired")

        if not self.policy.accepts_hash(sig.hash_algorithm, sig.creation_time):
            reject(f"hash algorithm {sig.hash_algorithm} is not acceptable")
        if not self.policy.accepts_public_key(sig.public_key_algorithm):
            reject(f"public key algorithm {sig.public_key_algorithm} is not acceptable")

        if created < to_seconds(target.creation_time):
            reject("signature predates the signee")

    @staticmethod
    def component(issuer: Node, target: Node, sig: SignatureRecord) -> EdgeComponent:
        depth = TrustDepth.auto(sig.trust_depth)
        regexes = RegexSet.from_expressions(sig.regexes)
        if sig.user_id is None:
            return EdgeComponent.delegation(
                issuer, target, sig.creation_time,
                trust_amount=sig.trust_amount, trust_depth=depth, regexes=regexes,
                expiration_time=sig.expiration_time, exportable=sig.exportable)
        return EdgeComponent.certification(
            issuer, target, sig.user_id, sig.creation_time,
            trust_amount=sig.trust_amount, trust_depth=depth, regexes=regexes,
            expiration_time=sig.expiration_time, exportable=sig.exportable)


def build_network(certificates: Iterable[CertificateRecord],
                  policy: Optional[SignaturePolicy] = None,
                  reference_time: Optional[datetime] = None) -> Network:
    """
    Convenience function to build a Network from certificate records.

    Args:
        certificates: certificate records, e.g. from a certificate store
        policy: signature acceptance policy, defaults to SignaturePolicy()
        reference_time: evaluation time, defaults to now

    Returns:
        Network evaluated at the reference time
    """
    return NetworkLoader(policy, reference_time).load(certificates)
