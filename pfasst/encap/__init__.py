from pfasst.encap.encapsulation import Encapsulation, EncapFactory, EncapType, mat_apply
