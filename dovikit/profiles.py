"""Default display management data for Dolby Vision profiles."""

from __future__ import annotations

from dataclasses import replace

from .vdr_dm_data import VdrDmData


class DoviProfile:
    """Base profile: PQ display management, backwards compatible."""

    @classmethod
    def dm_data(cls) -> VdrDmData:
        """Default display management data for the profile."""
        return VdrDmData.default_pq()

    @classmethod
    def backwards_compatible(cls) -> bool:
        """Whether the base layer plays without Dolby Vision."""
        return True


class Profile4(DoviProfile):
    """Profile 4: SDR base layer with enhancement layer."""

    @classmethod
    def dm_data(cls) -> VdrDmData:
        return VdrDmData(
            ycc_to_rgb_coef0=9575,
            ycc_to_rgb_coef1=0,
            ycc_to_rgb_coef2=14742,
            ycc_to_rgb_coef3=9575,
            ycc_to_rgb_coef4=-1754,
            ycc_to_rgb_coef5=-4383,
            ycc_to_rgb_coef6=9575,
            ycc_to_rgb_coef7=17372,
            ycc_to_rgb_coef8=0,
            ycc_to_rgb_offset0=67108864,
            ycc_to_rgb_offset1=536870912,
            ycc_to_rgb_offset2=536870912,
            rgb_to_lms_coef0=5845,
            rgb_to_lms_coef1=9702,
            rgb_to_lms_coef2=837,
            rgb_to_lms_coef3=2568,
            rgb_to_lms_coef4=12256,
            rgb_to_lms_coef5=1561,
            rgb_to_lms_coef6=0,
            rgb_to_lms_coef7=679,
            rgb_to_lms_coef8=15705,
            signal_eotf=39322,
            signal_eotf_param0=15867,
            signal_eotf_param1=228,
            signal_eotf_param2=1383604,
            signal_bit_depth=14,
            signal_full_range_flag=1,
            source_diagonal=42,
        )


class Profile5(DoviProfile):
    """Profile 5: IPTPQc2, not backwards compatible."""

    @classmethod
    def dm_data(cls) -> VdrDmData:
        return replace(
            VdrDmData.default_pq(),
            ycc_to_rgb_coef0=8192,
            ycc_to_rgb_coef1=799,
            ycc_to_rgb_coef2=1681,
            ycc_to_rgb_coef3=8192,
            ycc_to_rgb_coef4=-933,
            ycc_to_rgb_coef5=1091,
            ycc_to_rgb_coef6=8192,
            ycc_to_rgb_coef7=267,
            ycc_to_rgb_coef8=-5545,
            ycc_to_rgb_offset0=0,
            ycc_to_rgb_offset1=134217728,
            ycc_to_rgb_offset2=134217728,
            rgb_to_lms_coef0=17081,
            rgb_to_lms_coef1=-349,
            rgb_to_lms_coef2=-349,
            rgb_to_lms_coef3=-349,
            rgb_to_lms_coef4=17081,
            rgb_to_lms_coef5=-349,
            rgb_to_lms_coef6=-349,
            rgb_to_lms_coef7=-349,
            rgb_to_lms_coef8=17081,
            signal_color_space=2,
        )

    @classmethod
    def backwards_compatible(cls) -> bool:
        return False


class Profile81(DoviProfile):
    """Profile 8.1: HDR10 compatible base layer."""

    @classmethod
    def dm_data(cls) -> VdrDmData:
        return replace(
            VdrDmData.default_pq(),
            ycc_to_rgb_coef0=9574,
            ycc_to_rgb_coef1=0,
            ycc_to_rgb_coef2=13802,
            ycc_to_rgb_coef3=9574,
            ycc_to_rgb_coef4=-1540,
            ycc_to_rgb_coef5=-5348,
            ycc_to_rgb_coef6=9574,
            ycc_to_rgb_coef7=17610,
            ycc_to_rgb_coef8=0,
            ycc_to_rgb_offset0=16777216,
            ycc_to_rgb_offset1=134217728,
            ycc_to_rgb_offset2=134217728,
            rgb_to_lms_coef0=7222,
            rgb_to_lms_coef1=8771,
            rgb_to_lms_coef2=390,
            rgb_to_lms_coef3=2654,
            rgb_to_lms_coef4=12430,
            rgb_to_lms_coef5=1300,
            rgb_to_lms_coef6=0,
            rgb_to_lms_coef7=422,
            rgb_to_lms_coef8=15962,
        )


class Profile7(DoviProfile):
    """Profile 7: dual layer, same display management as profile 8.1."""

    @classmethod
    def dm_data(cls) -> VdrDmData:
        return Profile81.dm_data()